"""
Structural records: the persisted form of a MasterPassword and a Secret.

Records only hold text and integers. Binary values are URL-safe base64 text
produced by secretstore.security.cipher.encode. Field names are shared by the
database layer and the interchange document.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping

from .exceptions import MalformedRecordError


def _check_fields(record) -> None:
    # Validate every declared field against its annotated type.
    name = type(record).__name__
    for f in fields(record):
        value = getattr(record, f.name)
        expected = int if f.type in (int, "int") else str
        # bool is an int subclass; never accept it for counts
        if not isinstance(value, expected) or isinstance(value, bool):
            raise MalformedRecordError(
                f"{name}.{f.name} must be {expected.__name__}, got {type(value).__name__}"
            )


def _require(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, Mapping):
        raise MalformedRecordError(
            f"{cls.__name__} data must be a mapping, got {type(data).__name__}"
        )
    values = {}
    for f in fields(cls):
        if f.name not in data or data[f.name] is None:
            raise MalformedRecordError(f"Missing field {f.name!r} in {cls.__name__}")
        values[f.name] = data[f.name]
    return values


@dataclass(frozen=True)
class MasterPasswordRecord:
    version: int
    verification_salt: str
    derivation_salt: str
    canary: str
    time_cost: int
    memory_cost: int
    parallelism: int
    iterations: int

    def __post_init__(self):
        _check_fields(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MasterPasswordRecord":
        """Build from a mapping; unknown keys are ignored, missing ones are fatal."""
        return cls(**_require(cls, data))


@dataclass(frozen=True)
class SecretRecord:
    label: str
    private_salt: str
    nonce: str
    ciphertext: str
    auth_tag: str

    def __post_init__(self):
        _check_fields(self)
        if not self.label:
            raise MalformedRecordError("SecretRecord.label must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SecretRecord":
        return cls(**_require(cls, data))
