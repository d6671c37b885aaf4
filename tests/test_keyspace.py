"""Tests for key space mapping."""
import pytest

from shardpir.shared.config import PIRConfig
from shardpir.shared.errors import KeyDomainError
from shardpir.shared.keyspace import KeySpace


class TestPresenceMapping:
    """Test shard/slot arithmetic with one slot per key."""

    def test_shard_and_slot(self):
        keyspace = KeySpace(PIRConfig(shard_width=20))
        assert keyspace.locate(9846819001) == (492340950, 1)
        assert keyspace.locate(9846819019) == (492340950, 19)
        assert keyspace.locate(9846819020) == (492340951, 0)

    def test_no_collisions_within_shard(self):
        keyspace = KeySpace(PIRConfig(shard_width=20))
        base = 9846819000
        slots = {}
        for key in range(base, base + 200):
            shard, slot = keyspace.locate(key)
            assert (shard, slot) not in slots
            slots[(shard, slot)] = key
            assert 0 <= slot < keyspace.nominal_width

    def test_widths(self):
        keyspace = KeySpace(PIRConfig(shard_width=20))
        assert keyspace.nominal_width == 20
        assert keyspace.encoded_width == 21
        assert keyspace.sentinel_index == 20

    def test_total_shards(self):
        keyspace = KeySpace(PIRConfig(shard_width=20, key_digits=10))
        assert keyspace.total_shards == 500000000
        assert KeySpace(PIRConfig(shard_width=3, key_digits=1)).total_shards == 4


class TestValueMapping:
    """Test block offsets when each key owns several slots."""

    def test_slot_is_scaled_by_value_width(self):
        keyspace = KeySpace(PIRConfig(shard_width=20, value_width=20))
        assert keyspace.slot_index_of(8065889001) == 20
        assert keyspace.slot_index_of(8065889000) == 0
        assert keyspace.slot_index_of(8065889019) == 380

    def test_blocks_do_not_overlap(self):
        keyspace = KeySpace(PIRConfig(shard_width=20, value_width=20))
        base = 8065889000
        offsets = sorted(keyspace.slot_index_of(k) for k in range(base, base + 20))
        assert offsets == list(range(0, 400, 20))
        assert keyspace.sentinel_index == 400


class TestKeyDomain:
    """Test rejection of keys outside the domain."""

    @pytest.mark.parametrize("key", [-1, 10 ** 10, 10 ** 12])
    def test_out_of_range(self, key):
        keyspace = KeySpace(PIRConfig())
        with pytest.raises(KeyDomainError):
            keyspace.shard_index_of(key)

    @pytest.mark.parametrize("key", ["9846819001", 9846819001.0, True, None])
    def test_non_integer(self, key):
        keyspace = KeySpace(PIRConfig())
        with pytest.raises(KeyDomainError, match="integer"):
            keyspace.slot_index_of(key)

    def test_domain_bounds(self):
        keyspace = KeySpace(PIRConfig(key_digits=10))
        assert keyspace.check_key(0) == 0
        assert keyspace.check_key(9999999999) == 9999999999
