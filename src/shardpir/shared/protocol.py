"""
Protocol definitions for client-server communication.

The transport is out of scope; messages only need to survive being turned
into a dict or JSON string and back.
"""
import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Optional

from shardpir.shared.errors import DecodeError


def encode_payload(payload: bytes) -> str:
    """Encode ciphertext bytes as a base64 string."""
    return base64.b64encode(payload).decode("utf-8")


def decode_payload(b64_str: str) -> bytes:
    """Decode a base64 ciphertext string."""
    try:
        return base64.b64decode(b64_str, validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise DecodeError(f"Payload is not valid base64: {e}") from e


@dataclass(frozen=True)
class Query:
    """
    Encrypted selector for one key.

    ``shard_index`` travels in cleartext; it narrows the key to one of
    ``shard_width`` candidates and is the only thing the server learns.
    """
    shard_index: int
    payload: bytes

    def to_dict(self) -> dict:
        return {"shard_index": self.shard_index, "payload": encode_payload(self.payload)}

    @classmethod
    def from_dict(cls, data: dict) -> "Query":
        try:
            shard_index = data["shard_index"]
            payload = data["payload"]
        except (KeyError, TypeError) as e:
            raise DecodeError(f"Malformed query message: {e}") from e
        if isinstance(shard_index, bool) or not isinstance(shard_index, int) or shard_index < 0:
            raise DecodeError(f"Invalid shard index: {shard_index!r}")
        return cls(shard_index=shard_index, payload=decode_payload(payload))

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "Query":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Query is not valid JSON: {e}") from e
        return cls.from_dict(data)


@dataclass(frozen=True)
class Response:
    """Encrypted slot-wise product of a Query and one shard."""
    payload: bytes
    server_time_ms: float = field(default=0.0, compare=False)

    def to_dict(self) -> dict:
        return {"payload": encode_payload(self.payload), "server_time_ms": self.server_time_ms}

    @classmethod
    def from_dict(cls, data: dict) -> "Response":
        try:
            payload = data["payload"]
        except (KeyError, TypeError) as e:
            raise DecodeError(f"Malformed response message: {e}") from e
        try:
            server_time_ms = float(data.get("server_time_ms", 0.0))
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid server time: {e}") from e
        return cls(payload=decode_payload(payload), server_time_ms=server_time_ms)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "Response":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Response is not valid JSON: {e}") from e
        return cls.from_dict(data)


@dataclass
class LookupResult:
    """Result of a private lookup."""
    key: int
    shard_index: int
    present: bool
    value: Optional[str] = None
    timing: dict = field(default_factory=dict)


@dataclass
class BenchmarkResult:
    """Results from a benchmark run."""
    operation: str
    shard_width: int
    value_width: int
    num_operations: int
    total_time_seconds: float
    avg_time_per_op_ms: float
    throughput_ops_per_sec: float
    payload_bytes: Optional[int] = None
    notes: str = ""

    def __str__(self) -> str:
        return (
            f"Benchmark: {self.operation}\n"
            f"  Shard width: {self.shard_width}\n"
            f"  Value width: {self.value_width}\n"
            f"  Operations: {self.num_operations}\n"
            f"  Total time: {self.total_time_seconds:.3f}s\n"
            f"  Avg per op: {self.avg_time_per_op_ms:.3f}ms\n"
            f"  Throughput: {self.throughput_ops_per_sec:.2f} ops/s\n"
            f"  Payload: {self.payload_bytes if self.payload_bytes is not None else '-'} bytes\n"
            f"  Notes: {self.notes}"
        )
