#!/usr/bin/env python3
"""
Presence lookup walkthrough.

Four steps, each on the side that would run it in a deployment:
1. Server: build the shard database from a key set
2. Client: build an encrypted selector for one key
3. Server: multiply the selector by the plaintext shard
4. Client: decrypt and check whether the key's slot is set

Set SHARDPIR_EXPLAIN=1..3 for library-level detail.
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
from shardpir.shared.utils import Timer, configure_logging

DEFAULT_KEYS = [9846819001, 9846819002, 9846819003, 9846819006, 9846819007]


def run_presence_demo(key: int, keys, shard_width: int = 20) -> bool:
    """
    Run the presence walkthrough for one key.
    """
    config = PIRConfig(shard_width=shard_width)

    print("\nstep 1 (server): database initialization")
    with Timer() as t:
        server = PIRServer.from_keys(keys, config=config)
    print(f"  Database initialized, shards: {server.shard_count} ({t.elapsed_ms:.0f}ms)")

    print("\nstep 2 (client): create the query")
    with Timer() as t:
        client = LookupClient(CryptoClient(config))
        query = client.builder.build(key)
    print(f"  Key pair generated and query encrypted in {t.elapsed_ms:.0f}ms")
    print(f"  Sending shardIndex {query.shard_index} with {len(query.payload):,} byte ciphertext")

    print("\nstep 3 (server): process the query")
    response = server.handle(query)
    print(f"  Homomorphic multiplication done in {response.server_time_ms:.2f}ms")

    print("\nstep 4 (client): decrypt the result")
    present = client.decoder.decode_presence(response)
    print(f"  Key {key} present: {'Yes' if present else 'No'}")
    return present


def main():
    parser = argparse.ArgumentParser(description="Private presence lookup demo")
    parser.add_argument("key", type=int, nargs="?", default=9846819001, help="Key to look up")
    parser.add_argument("--keys", type=int, nargs="+", default=DEFAULT_KEYS, help="Server key set")
    parser.add_argument("--shard-width", type=int, default=20)
    parser.add_argument("--explain", type=int, default=None, help="Explain level 0-3")
    args = parser.parse_args()

    configure_logging(args.explain)
    run_presence_demo(args.key, args.keys, shard_width=args.shard_width)


if __name__ == "__main__":
    main()
