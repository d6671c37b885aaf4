"""
Key space mapping shared by client and server.

Every key maps to exactly one (shard, slot) pair. Both sides compute it
independently from the same ``PIRConfig``; no shard metadata is exchanged.
"""
import numbers
from typing import Tuple

from shardpir.shared.config import PIRConfig
from shardpir.shared.errors import KeyDomainError


class KeySpace:
    """Partitions the key domain into fixed-width shards."""

    def __init__(self, config: PIRConfig):
        self.config = config
        self.shard_width = config.shard_width
        self.block_width = config.block_width

    @property
    def nominal_width(self) -> int:
        return self.config.nominal_width

    @property
    def encoded_width(self) -> int:
        return self.config.encoded_width

    @property
    def sentinel_index(self) -> int:
        """Position of the reserved anti-transparency unit."""
        return self.config.nominal_width

    @property
    def total_shards(self) -> int:
        """Number of shards needed to cover the whole key domain."""
        return -(-self.config.key_domain_size // self.shard_width)

    def check_key(self, key: int) -> int:
        # bool is an int subclass but never a key
        if isinstance(key, bool) or not isinstance(key, numbers.Integral):
            raise KeyDomainError(f"Key must be an integer, got {type(key).__name__}")
        key = int(key)
        if not 0 <= key < self.config.key_domain_size:
            raise KeyDomainError(
                f"Key {key} outside domain [0, {self.config.key_domain_size})"
            )
        return key

    def shard_index_of(self, key: int) -> int:
        return self.check_key(key) // self.shard_width

    def slot_index_of(self, key: int) -> int:
        """First slot of the key's block inside its shard."""
        return (self.check_key(key) % self.shard_width) * self.block_width

    def locate(self, key: int) -> Tuple[int, int]:
        return self.shard_index_of(key), self.slot_index_of(key)
