#!/usr/bin/env python3
"""
Benchmark private lookups.

This script measures:
1. Key generation time
2. Query construction time
3. Server-side evaluation time
4. Decryption and decoding time
"""
import sys
import argparse
import random
from pathlib import Path
from typing import Callable, List

import numpy as np

# Add src to path for development
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from shardpir.client.crypto import CryptoClient
from shardpir.client.lookup import LookupClient
from shardpir.server.compute import PIRServer
from shardpir.shared.config import PIRConfig
from shardpir.shared.protocol import BenchmarkResult
from shardpir.shared.utils import Timer


def _summarize(operation: str, config: PIRConfig, times: List[float], payload_bytes=None, notes="") -> BenchmarkResult:
    avg_time = float(np.mean(times))
    return BenchmarkResult(
        operation=operation,
        shard_width=config.shard_width,
        value_width=config.value_width,
        num_operations=len(times),
        total_time_seconds=sum(times),
        avg_time_per_op_ms=avg_time * 1000,
        throughput_ops_per_sec=1 / avg_time if avg_time > 0 else 0,
        payload_bytes=payload_bytes,
        notes=notes,
    )


def _time(fn: Callable, num_trials: int) -> List[float]:
    times = []
    for _ in range(num_trials):
        with Timer() as t:
            fn()
        times.append(t.elapsed)
    return times


def run_benchmarks(config: PIRConfig, num_keys: int, num_trials: int, seed: int = 42) -> List[BenchmarkResult]:
    rng = random.Random(seed)
    keys = rng.sample(range(config.key_domain_size), num_keys)

    print(f"Building database of {num_keys:,} keys...")
    if config.is_value_variant:
        database = {k: str(k)[: config.value_width] for k in keys}
        server = PIRServer.from_values(database, config=config)
    else:
        server = PIRServer.from_keys(keys, config=config)
    print(f"  {server.shard_count:,} shards materialized")

    results = [_summarize("key_generation", config, _time(lambda: CryptoClient(config), num_trials))]

    client = LookupClient(CryptoClient(config))
    target = keys[0]

    results.append(_summarize(
        "query_build",
        config,
        _time(lambda: client.builder.build(target), num_trials),
    ))

    query = client.builder.build(target)
    results.append(_summarize(
        "server_evaluate",
        config,
        _time(lambda: server.handle(query), num_trials),
        payload_bytes=len(query.payload),
        notes=f"shard {query.shard_index}",
    ))

    response = server.handle(query)
    decode = client.decoder.decode_value if config.is_value_variant else client.decoder.decode_presence
    results.append(_summarize(
        "decrypt_decode",
        config,
        _time(lambda: decode(response), num_trials),
        payload_bytes=len(response.payload),
    ))
    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark private lookups")
    parser.add_argument("--num-keys", type=int, default=10000)
    parser.add_argument("--trials", type=int, default=10)
    parser.add_argument("--shard-width", type=int, default=20)
    parser.add_argument("--value-width", type=int, default=0)
    parser.add_argument("--degree", type=int, default=4096, help="BFV poly modulus degree")
    args = parser.parse_args()

    config = PIRConfig(
        shard_width=args.shard_width,
        value_width=args.value_width,
        poly_modulus_degree=args.degree,
    )

    print("=" * 70)
    print("shardpir lookup benchmark")
    print("=" * 70)
    for result in run_benchmarks(config, args.num_keys, args.trials):
        print()
        print(result)


if __name__ == "__main__":
    main()
