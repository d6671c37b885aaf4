"""Shared configuration, key mapping, crypto capability and protocol definitions."""
from shardpir.shared.config import PIRConfig
from shardpir.shared.crypto import BFVContext, CryptoBackend, KeyPair
from shardpir.shared.errors import (
    PIRError,
    ParameterError,
    DecodeError,
    KeyDomainError,
    ValueWidthError,
    MissingSecretKeyError,
)
from shardpir.shared.keyspace import KeySpace
from shardpir.shared.protocol import Query, Response, LookupResult, BenchmarkResult
from shardpir.shared.utils import Timer, configure_logging, explain_level

__all__ = [
    "PIRConfig",
    "BFVContext",
    "CryptoBackend",
    "KeyPair",
    "PIRError",
    "ParameterError",
    "DecodeError",
    "KeyDomainError",
    "ValueWidthError",
    "MissingSecretKeyError",
    "KeySpace",
    "Query",
    "Response",
    "LookupResult",
    "BenchmarkResult",
    "Timer",
    "configure_logging",
    "explain_level",
]
