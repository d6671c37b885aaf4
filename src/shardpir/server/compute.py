"""
Server-side oblivious evaluation.

The server multiplies the encrypted selector by the plaintext shard without
seeing:
- The queried key (only its shard index)
- The result (it stays encrypted)
"""
import logging
from typing import Iterable, Mapping, Optional

from shardpir.shared.config import PIRConfig
from shardpir.shared.crypto import BFVContext, CryptoBackend
from shardpir.shared.protocol import Query, Response
from shardpir.shared.utils import Timer
from shardpir.server.store import ShardStore

logger = logging.getLogger(__name__)


class ObliviousEvaluator:
    """
    Homomorphic evaluation engine.

    Computes Enc(selector) * shard slot-wise. Slots the selector does not
    cover drop to zero; the selected block survives unchanged.
    """

    def __init__(self, store: ShardStore, backend: CryptoBackend):
        """
        Initialize evaluator.

        Args:
            store: Database of plaintext shards
            backend: Crypto capability sharing the client's parameters
        """
        self.store = store
        self.backend = backend

    def evaluate_raw(self, shard_index: int, payload: bytes) -> bytes:
        """
        Evaluate a serialized query against one shard.

        Raises:
            DecodeError: if the payload is not a ciphertext for this context
        """
        encrypted_query = self.backend.deserialize(payload)
        shard = self.store.materialize(shard_index)
        plain_shard = self.backend.encode_vector(shard)
        result = self.backend.multiply_plain(encrypted_query, plain_shard)
        return self.backend.serialize(result)

    def evaluate(self, query: Query) -> Response:
        with Timer() as t:
            payload = self.evaluate_raw(query.shard_index, query.payload)
        logger.debug(
            "Processed encrypted query for shard %d in %.2fms", query.shard_index, t.elapsed_ms
        )
        return Response(payload=payload, server_time_ms=t.elapsed_ms)


class PIRServer:
    """
    Server holding a shard database and answering encrypted queries.

    The database is built once at startup; queries never mutate it.
    """

    def __init__(self, config: PIRConfig, backend: Optional[CryptoBackend] = None):
        self.config = config
        self.backend = backend or BFVContext.create(config)
        self.store = ShardStore(config)
        self.evaluator = ObliviousEvaluator(self.store, self.backend)

    @classmethod
    def from_keys(
        cls,
        keys: Iterable[int],
        config: Optional[PIRConfig] = None,
        backend: Optional[CryptoBackend] = None,
    ) -> "PIRServer":
        """Build a presence-only server."""
        server = cls(config or PIRConfig(), backend)
        server.store.load(keys)
        return server

    @classmethod
    def from_values(
        cls,
        values: Mapping[int, str],
        config: Optional[PIRConfig] = None,
        backend: Optional[CryptoBackend] = None,
    ) -> "PIRServer":
        """Build a server storing a bounded string per key."""
        config = config or PIRConfig(value_width=20)
        if not config.is_value_variant:
            raise ValueError("from_values needs a config with value_width > 0")
        server = cls(config, backend)
        server.store.load(values)
        return server

    def insert(self, key: int, value: Optional[str] = None) -> None:
        self.store.insert(key, value)

    def handle(self, query: Query) -> Response:
        return self.evaluator.evaluate(query)

    @property
    def shard_count(self) -> int:
        return self.store.count()
