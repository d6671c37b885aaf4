"""
shardpir: single-server private information retrieval over BFV.

The key domain is split into fixed-width shards:
1. Client: encrypts a one-hot selector for its key, sends it with the shard index
2. Server: multiplies the selector by the plaintext shard, slot by slot

The server NEVER decrypts the query or the response.
The client learns only its own key's slot (or value).
"""

__version__ = "0.1.0"
