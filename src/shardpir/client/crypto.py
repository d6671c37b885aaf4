"""
Client-side key material using Pyfhel BFV.
"""
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from shardpir.shared.config import PIRConfig
from shardpir.shared.crypto import BFVContext, CryptoBackend, KeyPair
from shardpir.shared.errors import MissingSecretKeyError


class CryptoClient:
    """
    Client session owning one BFV key pair.

    Responsible for:
    - Generating the key pair once per session
    - Encrypting selector vectors
    - Decrypting responses from the server
    - Exporting/importing keys
    """

    def __init__(
        self,
        config: Optional[PIRConfig] = None,
        keys: Optional[KeyPair] = None,
        backend: Optional[CryptoBackend] = None,
    ):
        """
        Initialize crypto client.

        Args:
            config: Parameters shared with the server
            keys: Pre-existing key pair; a fresh one is generated when None
            backend: Crypto capability; a BFV context is created when None
        """
        self.config = config or PIRConfig()
        self.backend = backend or BFVContext.create(self.config)
        self._keys = keys if keys is not None else self.backend.generate_keypair()

    @property
    def public_key(self) -> bytes:
        """Get the public key for sharing."""
        return self._keys.public_key

    @property
    def has_secret_key(self) -> bool:
        return self._keys.has_secret_key

    @property
    def slot_count(self) -> int:
        return self.backend.slot_count

    def encrypt_vector(self, vector: Union[Sequence[int], np.ndarray]) -> bytes:
        """
        Encode and encrypt an integer vector.

        Returns:
            Serialized ciphertext
        """
        plaintext = self.backend.encode_vector(vector)
        ciphertext = self.backend.encrypt(plaintext, self._keys.public_key)
        return self.backend.serialize(ciphertext)

    def decrypt_vector(self, payload: bytes) -> np.ndarray:
        """
        Decrypt a serialized ciphertext into its slot values.

        Raises:
            MissingSecretKeyError: if this client holds only the public key
            DecodeError: if the payload is malformed
        """
        if not self.has_secret_key:
            raise MissingSecretKeyError("Cannot decrypt without secret key")

        ciphertext = self.backend.deserialize(payload)
        plaintext = self.backend.decrypt(ciphertext, self._keys.secret_key)
        return self.backend.decode_vector(plaintext)

    def export_public_key(self, path: Union[str, Path]) -> None:
        """Export public key to file."""
        Path(path).write_bytes(self._keys.public_key)

    def export_secret_key(self, path: Union[str, Path]) -> None:
        """Export secret key to file."""
        if not self.has_secret_key:
            raise MissingSecretKeyError("No secret key to export")
        Path(path).write_bytes(self._keys.secret_key)

    @classmethod
    def from_public_key(
        cls,
        public_key: bytes,
        config: Optional[PIRConfig] = None,
    ) -> "CryptoClient":
        """
        Create client with only public key.

        It can build queries but cannot read responses.
        """
        return cls(config=config, keys=KeyPair(public_key=public_key))

    @classmethod
    def from_key_files(
        cls,
        public_key_file: Union[str, Path],
        secret_key_file: Optional[Union[str, Path]] = None,
        config: Optional[PIRConfig] = None,
    ) -> "CryptoClient":
        """Create client from exported key files."""
        secret_key = Path(secret_key_file).read_bytes() if secret_key_file else None
        keys = KeyPair(public_key=Path(public_key_file).read_bytes(), secret_key=secret_key)
        return cls(config=config, keys=keys)
