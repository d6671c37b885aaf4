"""
Query construction and result decoding.

A query is an encrypted one-hot selector over the blocks of a shard. The
response is the slot-wise product of that selector with the shard, so after
decryption only the selected key's block can be non-zero.
"""
import logging
from typing import Optional

import numpy as np

from shardpir.client.crypto import CryptoClient
from shardpir.shared.keyspace import KeySpace
from shardpir.shared.protocol import Query, Response
from shardpir.shared.utils import explain_level

logger = logging.getLogger(__name__)

# Byte values that never belong to a stored value: 0 marks unset slots and
# 1 is the presence flag and empty-shard sentinel
MARKERS = (0, 1)


class QueryBuilder:
    """Builds encrypted selector queries for one client session."""

    def __init__(self, crypto: CryptoClient, keyspace: Optional[KeySpace] = None):
        self.crypto = crypto
        self.keyspace = keyspace or KeySpace(crypto.config)

    def selector(self, key: int) -> np.ndarray:
        """
        Plaintext selector for ``key``: ones over the key's block, zeros elsewhere.

        Every slot of the block is set since the product is taken slot by slot.
        """
        slot_index = self.keyspace.slot_index_of(key)
        vector = np.zeros(self.crypto.slot_count, dtype=np.int64)
        vector[slot_index : slot_index + self.keyspace.block_width] = 1
        return vector

    def build(self, key: int) -> Query:
        """
        Create an encrypted query for ``key``.

        Raises:
            KeyDomainError: if the key is outside the configured domain
        """
        shard_index = self.keyspace.shard_index_of(key)
        vector = self.selector(key)

        if explain_level() >= 3:
            logger.debug(
                "Query constructed, populating at index %d: %s",
                self.keyspace.slot_index_of(key),
                vector[: self.keyspace.encoded_width].tolist(),
            )

        payload = self.crypto.encrypt_vector(vector)
        logger.info("Built encrypted query for shard %d", shard_index)
        return Query(shard_index=shard_index, payload=payload)


class ResultDecoder:
    """Turns encrypted responses back into presence flags or values."""

    def __init__(self, crypto: CryptoClient, keyspace: Optional[KeySpace] = None):
        self.crypto = crypto
        self.keyspace = keyspace or KeySpace(crypto.config)

    def decode_vector(self, response: Response) -> np.ndarray:
        """
        Decrypt a response and cut it to the shard's nominal width.

        The reserved anti-transparency unit and the unused tail of the slot
        vector are discarded.
        """
        decoded = self.crypto.decrypt_vector(response.payload)
        normalized = decoded[: self.keyspace.nominal_width]
        logger.debug("Decoded result: %s", normalized.tolist())
        return normalized

    def decode_presence(self, response: Response) -> bool:
        return bool(np.any(self.decode_vector(response) == 1))

    def decode_value(self, response: Response) -> str:
        """
        Recover the stored string; empty means the key is not present.

        Genuine characters with code 0 or 1 are indistinguishable from the
        markers and are dropped.
        """
        normalized = self.decode_vector(response)
        codes = [int(code) for code in normalized if code not in MARKERS]
        return "".join(chr(code) for code in codes)
