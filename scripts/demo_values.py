#!/usr/bin/env python3
"""
Value lookup walkthrough.

Like demo_presence.py, but every key stores a short string in a fixed
block of slots and the client recovers the string itself.
"""
import sys
import argparse
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from shardpir.client.crypto import CryptoClient
from shardpir.client.lookup import LookupClient
from shardpir.server.compute import PIRServer
from shardpir.shared.config import PIRConfig
from shardpir.shared.utils import configure_logging

DEFAULT_DATABASE = {
    9846819001: "Abelet",
    9846819002: "Bhaskar",
    9846819003: "Cain",
    9846819006: "Doge",
    9846819007: "Elon",
}


def run_values_demo(key: int, database: dict, shard_width: int = 20, value_width: int = 20) -> str:
    config = PIRConfig(shard_width=shard_width, value_width=value_width)

    print("\nstep 1 (server): database initialization")
    server = PIRServer.from_values(database, config=config)
    print(f"  Database initialized, shards: {server.shard_count}")

    print("\nstep 2 (client): create the query")
    client = LookupClient(CryptoClient(config))
    query = client.builder.build(key)
    print(f"  Encrypted query for shardIndex {query.shard_index} asking for {key}")

    print("\nstep 3 (server): process the query")
    response = server.handle(query)
    print("  Encrypted result after homomorphic multiply sent back to client")

    print("\nstep 4 (client): decrypt the result")
    value = client.decoder.decode_value(response)
    print(f"  Key {key} value: {value!r}" if value else f"  Key {key} not present")
    return value


def main():
    parser = argparse.ArgumentParser(description="Private value lookup demo")
    parser.add_argument("key", type=int, nargs="?", default=9846819001, help="Key to look up")
    parser.add_argument("--shard-width", type=int, default=20)
    parser.add_argument("--value-width", type=int, default=20)
    parser.add_argument("--explain", type=int, default=None, help="Explain level 0-3")
    args = parser.parse_args()

    configure_logging(args.explain)
    run_values_demo(args.key, DEFAULT_DATABASE, args.shard_width, args.value_width)


if __name__ == "__main__":
    main()
