"""
Exceptions raised by the PIR core.
"""


class PIRError(Exception):
    """Base class for all shardpir errors."""


class ParameterError(PIRError, RuntimeError):
    """Encryption parameters are invalid or inconsistent. Fatal at startup."""


class DecodeError(PIRError, ValueError):
    """A Query or Response payload could not be deserialized."""


class KeyDomainError(PIRError, ValueError):
    """A key lies outside the configured key domain."""


class ValueWidthError(PIRError, ValueError):
    """A value does not fit the configured per-key byte budget."""


class MissingSecretKeyError(PIRError, ValueError):
    """Decryption was attempted by a client holding only the public key."""
