"""
Sparse shard storage.

Shards are created lazily on first insert and live for the lifetime of the
store. An absent shard means "no keys in this range" and is served as a
synthesized empty shard carrying the anti-transparency sentinel.
"""
import logging
import threading
from typing import Dict, Iterable, Mapping, Optional, Union

import numpy as np

from shardpir.shared.config import PIRConfig
from shardpir.shared.errors import ValueWidthError
from shardpir.shared.keyspace import KeySpace
from shardpir.shared.utils import explain_level

logger = logging.getLogger(__name__)

UNSET = 0
PRESENT = 1
# Marks the reserved trailing unit of a shard with no real entries. Without
# it, multiplying a query by an all-zero plaintext yields a transparent
# ciphertext whose plaintext anyone can deduce (SEAL refuses to produce it).
SENTINEL = 1


class ShardStore:
    """
    Server-side mapping of shard index to shard content.

    Every shard is an int64 array of ``encoded_width`` slots: ``shard_width``
    blocks of ``block_width`` slots, then the reserved unit.
    """

    def __init__(self, config: PIRConfig, keyspace: Optional[KeySpace] = None):
        self.config = config
        self.keyspace = keyspace or KeySpace(config)
        self._shards: Dict[int, np.ndarray] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._shards)

    def __contains__(self, shard_index: int) -> bool:
        return shard_index in self._shards

    def count(self) -> int:
        """Number of materialized shards."""
        return len(self._shards)

    def insert(self, key: int, value: Optional[str] = None) -> None:
        """
        Record a key, and in the value variant its value.

        Args:
            key: Key inside the configured domain
            value: String of at most ``value_width`` characters (value variant only)

        Raises:
            KeyDomainError: if the key is outside the domain
            ValueWidthError: if the value is missing, too long or unencodable
        """
        shard_index, slot_index = self.keyspace.locate(key)
        block = self._encode_block(key, value)

        with self._lock:
            shard = self._shards.get(shard_index)
            if shard is None:
                shard = np.zeros(self.keyspace.encoded_width, dtype=np.int64)
                self._shards[shard_index] = shard
            shard[slot_index : slot_index + len(block)] = block

        logger.debug("Stored key %d in shard %d at slot %d", key, shard_index, slot_index)

    def load(self, entries: Union[Iterable[int], Mapping[int, str]]) -> int:
        """
        Bulk-initialize from keys (presence) or a key to value mapping.

        Returns:
            Number of entries inserted
        """
        logger.info(
            "Total shards: %d assuming keys below %d",
            self.keyspace.total_shards,
            self.config.key_domain_size,
        )
        inserted = 0
        if isinstance(entries, Mapping):
            for key, value in entries.items():
                self.insert(key, value)
                inserted += 1
        else:
            for key in entries:
                self.insert(key)
                inserted += 1
        logger.info("Database initialized, shards: %d", self.count())
        return inserted

    def materialize(self, shard_index: int) -> np.ndarray:
        """
        Get the plaintext content of a shard for evaluation.

        Never fails: an absent shard yields zeros with the sentinel set.
        The returned array is a copy and may be freely modified.
        """
        stored = self._shards.get(shard_index)
        if stored is None:
            logger.debug("Shard %d does not exist, creating an empty one", shard_index)
            shard = np.zeros(self.keyspace.encoded_width, dtype=np.int64)
        else:
            shard = stored.copy()

        # Also covers stored shards whose only values were empty strings
        if not shard[: self.keyspace.nominal_width].any():
            shard[self.keyspace.sentinel_index] = SENTINEL

        if explain_level() >= 3:
            logger.debug(
                "Shard %d contents: %s",
                shard_index,
                shard[: self.keyspace.nominal_width].tolist(),
            )
        return shard

    def _encode_block(self, key: int, value: Optional[str]) -> np.ndarray:
        if not self.config.is_value_variant:
            if value is not None:
                raise ValueWidthError("Presence store does not hold values")
            return np.array([PRESENT], dtype=np.int64)

        if not isinstance(value, str):
            raise ValueWidthError(f"Key {key} needs a string value, got {type(value).__name__}")
        width = self.config.value_width
        if len(value) > width:
            raise ValueWidthError(f"Value for key {key} has {len(value)} characters, limit is {width}")

        codes = [ord(ch) for ch in value]
        if any(code > self.config.max_symbol for code in codes):
            raise ValueWidthError(
                f"Value for key {key} has characters above {self.config.max_symbol}"
            )
        if any(code in (UNSET, SENTINEL) for code in codes):
            logger.warning(
                "Value for key %d contains code points 0 or 1; they will be lost on decode", key
            )

        # Full-width block so a re-insert overwrites any longer previous value
        block = np.zeros(width, dtype=np.int64)
        block[: len(codes)] = codes
        return block
