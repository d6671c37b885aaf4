"""
Client-side lookup orchestration.

Coordinates the full lookup flow:
1. Build and encrypt the selector query
2. Send to server (via function call or any transport)
3. Receive the encrypted response
4. Decrypt and interpret it
"""
import logging
from typing import Callable

from shardpir.client.crypto import CryptoClient
from shardpir.client.query import QueryBuilder, ResultDecoder
from shardpir.shared.keyspace import KeySpace
from shardpir.shared.protocol import LookupResult, Query, Response
from shardpir.shared.utils import Timer

logger = logging.getLogger(__name__)

ServerFn = Callable[[Query], Response]


class LookupClient:
    """
    Client-side lookup coordinator.

    Handles the full lookup lifecycle while keeping the key private.
    """

    def __init__(self, crypto_client: CryptoClient):
        """
        Initialize lookup client.

        Args:
            crypto_client: Session owning the key pair
        """
        self.crypto = crypto_client
        self.keyspace = KeySpace(crypto_client.config)
        self.builder = QueryBuilder(crypto_client, self.keyspace)
        self.decoder = ResultDecoder(crypto_client, self.keyspace)

    def _round_trip(self, key: int, server_fn: ServerFn):
        timing = {}

        with Timer() as t:
            query = self.builder.build(key)
        timing["encrypt_ms"] = t.elapsed_ms

        with Timer() as t:
            response = server_fn(query)
        timing["server_compute_ms"] = response.server_time_ms or t.elapsed_ms

        return query, response, timing

    def lookup(self, key: int, server_fn: ServerFn) -> LookupResult:
        """
        Privately look up ``key``.

        Args:
            key: Key to look up
            server_fn: Function answering a query.
                       Signature: (Query) -> Response

        Returns:
            LookupResult with presence, value (value variant only) and timing
        """
        query, response, timing = self._round_trip(key, server_fn)

        with Timer() as t:
            if self.crypto.config.is_value_variant:
                value = self.decoder.decode_value(response)
                present = bool(value)
            else:
                value = None
                present = self.decoder.decode_presence(response)
        timing["decrypt_ms"] = t.elapsed_ms

        timing["total_ms"] = sum([
            timing["encrypt_ms"],
            timing["server_compute_ms"],
            timing["decrypt_ms"],
        ])
        logger.info("Key lookup in shard %d done in %.2fms", query.shard_index, timing["total_ms"])

        return LookupResult(
            key=key,
            shard_index=query.shard_index,
            present=present,
            value=value,
            timing=timing,
        )

    def contains(self, key: int, server_fn: ServerFn) -> bool:
        return self.lookup(key, server_fn).present

    def fetch(self, key: int, server_fn: ServerFn) -> str:
        """Retrieve the value for ``key``; empty string when absent."""
        if not self.crypto.config.is_value_variant:
            raise ValueError("fetch needs a value-variant configuration")
        return self.lookup(key, server_fn).value
