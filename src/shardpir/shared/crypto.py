"""
BFV crypto capability backed by Pyfhel.

The PIR core only needs batched encode/decode, encrypt/decrypt,
ciphertext-by-plaintext multiplication and ciphertext serialization. This
module exposes exactly that surface and nothing of the scheme internals.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import numpy as np
from Pyfhel import Pyfhel, PyCtxt, PyPtxt

from shardpir.shared.config import PIRConfig
from shardpir.shared.errors import DecodeError, MissingSecretKeyError, ParameterError

logger = logging.getLogger(__name__)

# Errors SEAL surfaces through the Cython layer on bad input
_SEAL_ERRORS = (ValueError, RuntimeError, TypeError, OSError, IndexError)

# Status strings SEAL reports for a usable parameter set
_CONTEXT_OK = {"success", "valid", "success: valid"}


@dataclass(frozen=True)
class KeyPair:
    """Serialized BFV key material. ``secret_key`` is None for public-only holders."""
    public_key: bytes
    secret_key: Optional[bytes] = None

    @property
    def has_secret_key(self) -> bool:
        return self.secret_key is not None


class CryptoBackend(Protocol):
    """Capability interface consumed by the query builder, evaluator and decoder."""

    slot_count: int

    def generate_keypair(self) -> KeyPair: ...

    def encode_vector(self, values: Sequence[int]) -> PyPtxt: ...

    def decode_vector(self, plaintext: PyPtxt) -> np.ndarray: ...

    def encrypt(self, plaintext: PyPtxt, public_key: bytes) -> PyCtxt: ...

    def decrypt(self, ciphertext: PyCtxt, secret_key: bytes) -> PyPtxt: ...

    def multiply_plain(self, ciphertext: PyCtxt, plaintext: PyPtxt) -> PyCtxt: ...

    def serialize(self, ciphertext: PyCtxt) -> bytes: ...

    def deserialize(self, data: bytes) -> PyCtxt: ...


class BFVContext:
    """
    A validated BFV context with batching.

    Client and server each build their own instance from the same
    ``PIRConfig`` (or the server restores the client's via ``from_bytes``);
    identical parameters yield interchangeable ciphertexts. Keys are loaded
    into the underlying Pyfhel object on demand, so one context can serve
    a key-less evaluator as well as a client session.
    """

    def __init__(self, he: Pyfhel, config: PIRConfig):
        self._he = he
        self.config = config
        self.slot_count = he.get_nSlots()
        self.plain_modulus = he.t
        self._public_key: Optional[bytes] = None
        self._secret_key: Optional[bytes] = None

        if self.slot_count < config.encoded_width:
            raise ParameterError(
                f"Context has {self.slot_count} slots, shard needs {config.encoded_width}"
            )

    @classmethod
    def create(cls, config: PIRConfig) -> "BFVContext":
        """
        Generate a fresh context from the configured parameters.

        Raises:
            ParameterError: if SEAL rejects the parameter set
        """
        he = Pyfhel()
        try:
            status = he.contextGen(
                scheme="bfv",
                n=config.poly_modulus_degree,
                t_bits=config.plain_modulus_bits,
                sec=config.security_level,
            )
        except _SEAL_ERRORS as e:
            raise ParameterError(f"Invalid encryption parameters: {e}") from e
        if isinstance(status, bytes):
            status = status.decode("utf-8", "replace")
        if status is not None and str(status).strip().lower() not in _CONTEXT_OK:
            raise ParameterError(f"Invalid encryption parameters: {status}")

        logger.info(
            "BFV context ready: n=%d t_bits=%d sec=%d",
            config.poly_modulus_degree,
            config.plain_modulus_bits,
            config.security_level,
        )
        return cls(he, config)

    @classmethod
    def from_bytes(cls, data: bytes, config: PIRConfig) -> "BFVContext":
        """Restore a context exported with ``to_bytes`` (no keys included)."""
        he = Pyfhel()
        try:
            he.from_bytes_context(data)
        except _SEAL_ERRORS as e:
            raise ParameterError(f"Could not load encryption context: {e}") from e
        return cls(he, config)

    def to_bytes(self) -> bytes:
        return self._he.to_bytes_context()

    # -- keys ---------------------------------------------------------------

    def generate_keypair(self) -> KeyPair:
        self._he.keyGen()
        public_key = self._he.to_bytes_public_key()
        secret_key = self._he.to_bytes_secret_key()
        self._public_key, self._secret_key = public_key, secret_key
        return KeyPair(public_key=public_key, secret_key=secret_key)

    def _use_public_key(self, public_key: bytes) -> None:
        if self._public_key != public_key:
            self._he.from_bytes_public_key(public_key)
            self._public_key = public_key

    def _use_secret_key(self, secret_key: Optional[bytes]) -> None:
        if secret_key is None:
            raise MissingSecretKeyError("Cannot decrypt without secret key")
        if self._secret_key != secret_key:
            self._he.from_bytes_secret_key(secret_key)
            self._secret_key = secret_key

    # -- plaintexts ---------------------------------------------------------

    def encode_vector(self, values: Sequence[int]) -> PyPtxt:
        """Batch-encode integers, zero-padding to the full slot count."""
        vector = np.zeros(self.slot_count, dtype=np.int64)
        values = np.asarray(values, dtype=np.int64)
        if len(values) > self.slot_count:
            raise ValueError(f"Vector of {len(values)} exceeds {self.slot_count} slots")
        vector[: len(values)] = values
        return self._he.encodeInt(vector)

    def decode_vector(self, plaintext: PyPtxt) -> np.ndarray:
        return np.asarray(self._he.decodeInt(plaintext), dtype=np.int64)

    # -- ciphertexts --------------------------------------------------------

    def encrypt(self, plaintext: PyPtxt, public_key: bytes) -> PyCtxt:
        self._use_public_key(public_key)
        return self._he.encryptPtxt(plaintext)

    def decrypt(self, ciphertext: PyCtxt, secret_key: Optional[bytes]) -> PyPtxt:
        self._use_secret_key(secret_key)
        return self._he.decryptPtxt(ciphertext)

    def multiply_plain(self, ciphertext: PyCtxt, plaintext: PyPtxt) -> PyCtxt:
        """Slot-wise product; the input ciphertext is left untouched."""
        return self._he.multiply_plain(ciphertext, plaintext, in_new_ctxt=True)

    def serialize(self, ciphertext: PyCtxt) -> bytes:
        return ciphertext.to_bytes()

    def deserialize(self, data: bytes) -> PyCtxt:
        """
        Load a ciphertext produced under this context's parameters.

        Raises:
            DecodeError: if ``data`` is not a valid serialized ciphertext
        """
        if not isinstance(data, (bytes, bytearray)) or not data:
            raise DecodeError("Ciphertext payload must be non-empty bytes")
        try:
            return PyCtxt(pyfhel=self._he, bytestring=bytes(data))
        except _SEAL_ERRORS as e:
            raise DecodeError(f"Failed to deserialize ciphertext: {e}") from e
