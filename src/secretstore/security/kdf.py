"""Key derivation for SecretStore.

Two functions with different jobs:
- ``hash_password``: Argon2id, slow and memory-hard, applied once to the
  master password text
- ``derive_key``: PBKDF2-HMAC-SHA256 with a high iteration count, used to turn
  the password hash into key material and key material into record keys
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

SALT_LENGTH = 16
KEY_LENGTH = 32

DEFAULT_TIME_COST = 3
DEFAULT_MEMORY_COST = 65536
DEFAULT_PARALLELISM = 1
PBKDF2_ITERATIONS = 100_000


@dataclass(frozen=True)
class KdfParams:
    """Cost parameters in force when a master password was created."""

    time_cost: int = DEFAULT_TIME_COST
    memory_cost: int = DEFAULT_MEMORY_COST
    parallelism: int = DEFAULT_PARALLELISM
    iterations: int = PBKDF2_ITERATIONS


def generate_salt(length: int = SALT_LENGTH) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def hash_password(
    password: bytes | str,
    salt: bytes,
    time_cost: int = DEFAULT_TIME_COST,
    memory_cost: int = DEFAULT_MEMORY_COST,
    parallelism: int = DEFAULT_PARALLELISM,
    key_len: int = KEY_LENGTH,
) -> bytes:
    """
    Hash a password with Argon2id.
    Returns raw hash bytes, never an encoded hash string.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")

    return hash_secret_raw(
        secret=bytes(password),
        salt=salt,
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=key_len,
        type=Type.ID,
    )


def derive_key(
    password: bytes | bytearray | str,
    salt: bytes,
    iterations: int = PBKDF2_ITERATIONS,
    key_len: int = KEY_LENGTH,
) -> bytes:
    """Derive fixed-length key bytes with PBKDF2-HMAC-SHA256.

    Same inputs always give the same output.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=key_len,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password)
