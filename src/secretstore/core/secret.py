"""
Secret: one labeled, independently encrypted record.

Each write generates a fresh private salt and nonce, derives a record key from
the caller's key material and the private salt, and encrypts with the label
bound as associated data. A ciphertext copied under another label therefore
fails authentication.
"""

from __future__ import annotations

from ..security.cipher import (
    NONCE_LENGTH,
    TAG_LENGTH,
    decode,
    decrypt,
    encode,
    encrypt,
    generate_nonce,
    scrub,
)
from ..security.kdf import PBKDF2_ITERATIONS, SALT_LENGTH, derive_key, generate_salt
from .exceptions import MalformedRecordError
from .records import SecretRecord


def _record_key(key_material, private_salt: bytes, iterations: int) -> bytearray:
    return bytearray(derive_key(key_material, private_salt, iterations=iterations))


class Secret:
    __slots__ = ("label", "private_salt", "nonce", "ciphertext", "auth_tag")

    def __init__(self, label, private_salt, nonce, ciphertext, auth_tag):
        if not isinstance(label, str) or not label:
            raise ValueError("Secret label must be a non-empty string")
        self.label = label
        self.private_salt = private_salt
        self.nonce = nonce
        self.ciphertext = ciphertext
        self.auth_tag = auth_tag

    @classmethod
    def create(cls, label, plaintext, key_material, iterations=PBKDF2_ITERATIONS):
        """Encrypt ``plaintext`` under a new record key and return a new Secret."""
        secret = cls(label, b"", b"", b"", b"")
        return secret.replace(plaintext, key_material, iterations=iterations)

    def replace(self, plaintext, key_material, iterations=PBKDF2_ITERATIONS):
        """
        Re-encrypt in place with fresh salt and nonce, keeping the label.

        Output differs on every call, even for identical plaintext and key material.
        """
        private_salt = generate_salt()
        nonce = generate_nonce()
        key = _record_key(key_material, private_salt, iterations)
        try:
            ciphertext, tag = encrypt(
                plaintext.encode("utf-8"), key, nonce, self.label.encode("utf-8")
            )
        finally:
            scrub(key)

        self.private_salt = private_salt
        self.nonce = nonce
        self.ciphertext = ciphertext
        self.auth_tag = tag
        return self

    def decrypt(self, key_material, iterations=PBKDF2_ITERATIONS):
        """
        Return the plaintext; raise AuthenticationError on any mismatch.

        A wrong key, tampered salt/nonce/ciphertext/tag or a changed label all
        fail the same way. Stored fields are never modified.
        """
        key = _record_key(key_material, self.private_salt, iterations)
        try:
            plaintext = decrypt(
                self.ciphertext, self.auth_tag, key, self.nonce, self.label.encode("utf-8")
            )
        finally:
            scrub(key)
        return plaintext.decode("utf-8")

    def to_record(self):
        return SecretRecord(
            label=self.label,
            private_salt=encode(self.private_salt),
            nonce=encode(self.nonce),
            ciphertext=encode(self.ciphertext),
            auth_tag=encode(self.auth_tag),
        )

    @classmethod
    def from_record(cls, record):
        private_salt = decode(record.private_salt)
        nonce = decode(record.nonce)
        auth_tag = decode(record.auth_tag)
        if len(private_salt) != SALT_LENGTH:
            raise MalformedRecordError(
                f"Secret {record.label!r}: private salt must be {SALT_LENGTH} bytes"
            )
        if len(nonce) != NONCE_LENGTH:
            raise MalformedRecordError(f"Secret {record.label!r}: nonce must be {NONCE_LENGTH} bytes")
        if len(auth_tag) != TAG_LENGTH:
            raise MalformedRecordError(f"Secret {record.label!r}: auth tag must be {TAG_LENGTH} bytes")
        return cls(record.label, private_salt, nonce, decode(record.ciphertext), auth_tag)

    def __repr__(self):
        return f"Secret(label={self.label!r})"
