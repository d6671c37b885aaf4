"""Client-side components for private lookups."""
from shardpir.client.crypto import CryptoClient
from shardpir.client.query import QueryBuilder, ResultDecoder
from shardpir.client.lookup import LookupClient

__all__ = ["CryptoClient", "QueryBuilder", "ResultDecoder", "LookupClient"]
