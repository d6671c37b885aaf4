"""Integration tests for the full lookup pipeline."""
import numpy as np
import pytest

from shardpir.client.crypto import CryptoClient
from shardpir.client.lookup import LookupClient
from shardpir.client.query import QueryBuilder, ResultDecoder
from shardpir.server.compute import PIRServer
from shardpir.server.store import SENTINEL
from shardpir.shared.config import PIRConfig
from shardpir.shared.crypto import BFVContext
from shardpir.shared.errors import DecodeError, KeyDomainError, MissingSecretKeyError
from shardpir.shared.protocol import Query, Response

PRESENCE_KEYS = [9846819001, 9846819002, 9846819003, 9846819006, 9846819007]
VALUES = {9846819001: "Abelet Winston", 8065889001: "Ammu"}

PRESENCE_CONFIG = PIRConfig(shard_width=20)
VALUE_CONFIG = PIRConfig(shard_width=20, value_width=20)


@pytest.fixture(scope="module")
def presence_server():
    return PIRServer.from_keys(PRESENCE_KEYS, config=PRESENCE_CONFIG)


@pytest.fixture(scope="module")
def presence_client():
    return LookupClient(CryptoClient(PRESENCE_CONFIG))


@pytest.fixture(scope="module")
def value_server():
    return PIRServer.from_values(VALUES, config=VALUE_CONFIG)


@pytest.fixture(scope="module")
def value_client():
    return LookupClient(CryptoClient(VALUE_CONFIG))


class TestPresenceLookup:
    """Test presence-only lookups."""

    def test_present_key(self, presence_server, presence_client):
        assert presence_client.contains(9846819001, presence_server.handle)

    @pytest.mark.parametrize("key", PRESENCE_KEYS)
    def test_all_inserted_keys_found(self, presence_server, presence_client, key):
        assert presence_client.contains(key, presence_server.handle)

    def test_absent_shard(self, presence_server, presence_client):
        assert presence_server.shard_count == 1
        assert not presence_client.contains(8846819001, presence_server.handle)
        assert presence_server.shard_count == 1

    @pytest.mark.parametrize("key", [9846819000, 9846819004, 9846819005, 9846819019])
    def test_unset_key_in_populated_shard(self, presence_server, presence_client, key):
        assert not presence_client.contains(key, presence_server.handle)

    def test_idempotent(self, presence_server, presence_client):
        first = presence_client.lookup(9846819002, presence_server.handle)
        second = presence_client.lookup(9846819002, presence_server.handle)
        assert first.present and second.present
        assert first.shard_index == second.shard_index == 492340950
        assert first.value is None

    def test_timing(self, presence_server, presence_client):
        result = presence_client.lookup(9846819003, presence_server.handle)
        for field in ("encrypt_ms", "server_compute_ms", "decrypt_ms", "total_ms"):
            assert field in result.timing
        assert result.timing["total_ms"] > 0

    def test_over_json_transport(self, presence_server, presence_client):
        def server_fn(query):
            wire = presence_server.handle(Query.from_json(query.to_json())).to_json()
            return Response.from_json(wire)

        assert presence_client.contains(9846819006, server_fn)
        assert not presence_client.contains(9846819008, server_fn)

    def test_fetch_needs_value_variant(self, presence_server, presence_client):
        with pytest.raises(ValueError):
            presence_client.fetch(9846819001, presence_server.handle)


class TestValueLookup:
    """Test lookups retrieving stored strings."""

    def test_fetch_value(self, value_server, value_client):
        assert value_client.fetch(8065889001, value_server.handle) == "Ammu"

    def test_fetch_full_value(self, value_server, value_client):
        assert value_client.fetch(9846819001, value_server.handle) == "Abelet Winston"

    def test_unset_key_in_same_shard(self, value_server, value_client):
        result = value_client.lookup(8065889002, value_server.handle)
        assert result.value == ""
        assert not result.present

    def test_absent_shard(self, value_server, value_client):
        assert value_client.fetch(1234567890, value_server.handle) == ""

    def test_neighbouring_keys_do_not_leak(self, value_server, value_client):
        value_server.insert(8065889000, "Bhaskar")
        value_server.insert(8065889019, "Elon")
        assert value_client.fetch(8065889001, value_server.handle) == "Ammu"
        assert value_client.fetch(8065889000, value_server.handle) == "Bhaskar"
        assert value_client.fetch(8065889019, value_server.handle) == "Elon"

    def test_marker_characters_are_dropped(self, value_server, value_client):
        value_server.insert(8065889005, "a\x01b")
        assert value_client.fetch(8065889005, value_server.handle) == "ab"

    def test_value_of_only_markers_reads_as_absent(self, value_server, value_client):
        value_server.insert(8065889006, "\x01")
        result = value_client.lookup(8065889006, value_server.handle)
        assert result.value == ""
        assert not result.present

    def test_idempotent(self, value_server, value_client):
        first = value_client.fetch(9846819001, value_server.handle)
        assert value_client.fetch(9846819001, value_server.handle) == first


class TestQueryAndDecoder:
    """Test the building blocks directly."""

    def test_selector_presence(self):
        crypto = CryptoClient(PRESENCE_CONFIG)
        selector = QueryBuilder(crypto).selector(9846819006)
        assert selector.shape == (crypto.slot_count,)
        assert selector.sum() == 1
        assert selector[6] == 1

    def test_selector_value_covers_block(self, value_client):
        selector = value_client.builder.selector(8065889001)
        assert selector[20:40].tolist() == [1] * 20
        assert selector.sum() == 20
        assert selector[400] == 0

    def test_query_hides_key_but_not_shard(self, presence_client):
        query = presence_client.builder.build(9846819001)
        assert query.shard_index == 492340950
        assert isinstance(query.payload, bytes)
        assert query.payload != presence_client.builder.build(9846819001).payload

    def test_query_rejects_out_of_domain(self, presence_client):
        with pytest.raises(KeyDomainError):
            presence_client.builder.build(-5)

    def test_absent_shard_response_is_not_trivial(self, presence_server, presence_client):
        query = presence_client.builder.build(8846819001)
        assert query.shard_index not in presence_server.store
        assert presence_server.store.materialize(query.shard_index)[20] == SENTINEL

        response = presence_server.handle(query)
        assert response.payload

        raw = presence_client.crypto.decrypt_vector(response.payload)
        assert not np.any(raw[:21])

    def test_decode_vector_truncates(self, presence_server, presence_client):
        response = presence_server.handle(presence_client.builder.build(9846819007))
        vector = presence_client.decoder.decode_vector(response)
        assert vector.shape == (20,)
        assert vector.tolist() == [0] * 7 + [1] + [0] * 12


class TestFailures:
    """Test error reporting at the boundaries."""

    def test_malformed_query(self, presence_server):
        with pytest.raises(DecodeError):
            presence_server.handle(Query(shard_index=0, payload=b"not a ciphertext"))

    def test_empty_query(self, presence_server):
        with pytest.raises(DecodeError):
            presence_server.handle(Query(shard_index=0, payload=b""))

    def test_malformed_response(self, presence_client):
        with pytest.raises(DecodeError):
            presence_client.decoder.decode_presence(Response(payload=b"garbage bytes"))

    def test_public_key_only_client(self, presence_server, presence_client):
        public_only = CryptoClient.from_public_key(
            presence_client.crypto.public_key, config=PRESENCE_CONFIG
        )
        assert not public_only.has_secret_key

        query = QueryBuilder(public_only).build(9846819001)
        response = presence_server.handle(query)

        with pytest.raises(MissingSecretKeyError, match="Cannot decrypt"):
            ResultDecoder(public_only).decode_presence(response)

        # But the full session can read it
        assert presence_client.decoder.decode_presence(response)

    def test_exported_keys(self, tmp_path, presence_server, presence_client):
        presence_client.crypto.export_public_key(tmp_path / "pub.key")
        presence_client.crypto.export_secret_key(tmp_path / "sec.key")
        restored = CryptoClient.from_key_files(
            tmp_path / "pub.key", tmp_path / "sec.key", config=PRESENCE_CONFIG
        )
        assert LookupClient(restored).contains(9846819002, presence_server.handle)

    def test_server_from_shared_context(self, presence_client):
        context = BFVContext.from_bytes(presence_client.crypto.backend.to_bytes(), PRESENCE_CONFIG)
        server = PIRServer(PRESENCE_CONFIG, backend=context)
        server.insert(9846819003)
        assert presence_client.contains(9846819003, server.handle)
        assert not presence_client.contains(9846819002, server.handle)
