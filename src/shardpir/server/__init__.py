"""Server-side components for private lookups."""
from shardpir.server.store import ShardStore
from shardpir.server.compute import ObliviousEvaluator, PIRServer

__all__ = [
    "ShardStore",
    "ObliviousEvaluator",
    "PIRServer",
]
