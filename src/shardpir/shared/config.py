"""
Configuration shared out-of-band by client and server.

Both sides must build their key space and encryption context from the same
values; nothing here is negotiated per request.
"""
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from shardpir.shared.errors import ParameterError


class PIRConfig(BaseModel):
    """
    Sharding and BFV parameters.

    ``value_width == 0`` selects the presence-only variant, where each key
    owns a single slot holding 0 or 1.
    """
    model_config = ConfigDict(frozen=True)

    shard_width: int = Field(20, gt=0, description="Keys per shard (S)")
    value_width: int = Field(0, ge=0, description="Bytes per key (W), 0 for presence")
    key_digits: int = Field(10, gt=0, description="Keys are < 10**key_digits")

    poly_modulus_degree: int = Field(4096, description="BFV ring degree, also the slot count")
    plain_modulus_bits: int = Field(20, ge=14, le=60)
    security_level: int = Field(128)

    @model_validator(mode="after")
    def _check_layout(self) -> "PIRConfig":
        n = self.poly_modulus_degree
        if n < 1024 or n & (n - 1):
            raise ValueError(f"poly_modulus_degree must be a power of two >= 1024, got {n}")
        if self.security_level not in (128, 192, 256):
            raise ValueError(f"security_level must be 128, 192 or 256, got {self.security_level}")
        # One extra slot is reserved for the empty-shard sentinel
        if self.encoded_width > n:
            raise ValueError(
                f"shard of {self.shard_width} x {self.block_width} slots plus sentinel "
                f"does not fit {n} slots"
            )
        return self

    @property
    def is_value_variant(self) -> bool:
        return self.value_width > 0

    @property
    def block_width(self) -> int:
        """Slots owned by one key."""
        return self.value_width if self.value_width > 0 else 1

    @property
    def nominal_width(self) -> int:
        return self.shard_width * self.block_width

    @property
    def encoded_width(self) -> int:
        return self.nominal_width + 1

    @property
    def max_symbol(self) -> int:
        """Largest value a slot can carry without wrapping around the plain modulus."""
        return (1 << (self.plain_modulus_bits - 2)) - 1

    @property
    def key_domain_size(self) -> int:
        return 10 ** self.key_digits

    @classmethod
    def from_env(cls, prefix: str = "SHARDPIR_", **overrides) -> "PIRConfig":
        """
        Build a config from environment variables.

        Recognized variables are the field names upper-cased with ``prefix``,
        e.g. ``SHARDPIR_SHARD_WIDTH``. Explicit keyword overrides win.

        Raises:
            ParameterError: if a value is malformed or the layout is invalid
        """
        values = {}
        for name in cls.model_fields:
            raw: Optional[str] = os.environ.get(prefix + name.upper())
            if raw is not None:
                values[name] = raw
        values.update(overrides)
        try:
            return cls(**values)
        except ValidationError as e:
            raise ParameterError(f"Invalid configuration: {e}") from e
