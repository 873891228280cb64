"""Security primitives for SecretStore: key derivation, AEAD and key holding.

This package provides:
- Argon2id password hashing and PBKDF2 key derivation
- AES-256-GCM encryption with detached tags
- URL-safe base64 encoding for stored binary fields
- An in-memory key holder that zeroes key material on lock

Nothing here knows about records, repositories or labels.
"""

from .kdf import KdfParams, generate_salt, hash_password, derive_key
from .cipher import encode, decode, generate_nonce, encrypt, decrypt, scrub
from .session import KeySession

__all__ = [
    "KdfParams",
    "generate_salt",
    "hash_password",
    "derive_key",
    "encode",
    "decode",
    "generate_nonce",
    "encrypt",
    "decrypt",
    "scrub",
    "KeySession",
]
