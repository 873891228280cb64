"""
Master password: the vault's single credential.

Key hierarchy (scheme version 1):

    password text
      -> Argon2id(verification_salt)       slow, memory-hard password hash
      -> PBKDF2-SHA256(derivation_salt)     key material (32 bytes)
      -> PBKDF2-SHA256(secret.private_salt) per-record key, see core/secret.py

The password is confirmed by decrypting the canary: a fixed value encrypted
under the key material when the password was created. Neither the password
nor the key material is ever stored.

The two salts are chained on purpose: key material is derived from the
Argon2id output rather than from the password text alongside it. No separate
verifier hash is stored, so the Argon2id step exists only to make every
derivation slow and memory-hard; the canary does the verifying.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass, field
from typing import Optional, Tuple

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
from ..security.kdf import SALT_LENGTH, KdfParams, derive_key, generate_salt, hash_password
from .config import MIN_PASSWORD_LENGTH
from .exceptions import AuthenticationError, MalformedRecordError, WeaknessError
from .records import MasterPasswordRecord

SCHEME_VERSION = 1

CANARY_PLAINTEXT = b"secretstore:master-password:canary"
CANARY_ASSOCIATED_DATA = b"secretstore:master-password"


def check_password_strength(password_text: str) -> None:
    """Reject passwords shorter than MIN_PASSWORD_LENGTH."""
    if len(password_text) < MIN_PASSWORD_LENGTH:
        raise WeaknessError(
            f"Password too short. Minimum {MIN_PASSWORD_LENGTH} characters."
        )


def _derive_key_material(
    password_text: str,
    verification_salt: bytes,
    derivation_salt: bytes,
    params: KdfParams,
) -> bytearray:
    stretched = bytearray(
        hash_password(
            password_text,
            verification_salt,
            time_cost=params.time_cost,
            memory_cost=params.memory_cost,
            parallelism=params.parallelism,
        )
    )
    try:
        return bytearray(derive_key(stretched, derivation_salt, iterations=params.iterations))
    finally:
        scrub(stretched)


@dataclass(frozen=True)
class MasterPassword:
    verification_salt: bytes
    derivation_salt: bytes
    canary_nonce: bytes
    canary_ciphertext: bytes
    canary_tag: bytes
    kdf: KdfParams = field(default_factory=KdfParams)
    version: int = SCHEME_VERSION

    @classmethod
    def create(cls, password_text: str, params: Optional[KdfParams] = None) -> "MasterPassword":
        """Create a new master password; the derived key material is discarded."""
        password, key_material = cls.establish(password_text, params)
        scrub(key_material)
        return password

    @classmethod
    def establish(
        cls, password_text: str, params: Optional[KdfParams] = None
    ) -> Tuple["MasterPassword", bytearray]:
        """
        Create a new master password and return it with its activated key material.

        The caller owns the returned bytearray and must scrub it when done.
        """
        check_password_strength(password_text)
        params = params or KdfParams()

        verification_salt = generate_salt()
        derivation_salt = generate_salt()
        key_material = _derive_key_material(
            password_text, verification_salt, derivation_salt, params
        )

        nonce = generate_nonce()
        ciphertext, tag = encrypt(CANARY_PLAINTEXT, key_material, nonce, CANARY_ASSOCIATED_DATA)
        password = cls(
            verification_salt=verification_salt,
            derivation_salt=derivation_salt,
            canary_nonce=nonce,
            canary_ciphertext=ciphertext,
            canary_tag=tag,
            kdf=params,
        )
        return password, key_material

    def verify(self, password_text: str) -> bytearray:
        """
        Return the key material for ``password_text`` if it is the right password.

        The only check is authenticated decryption of the canary. Raises
        AuthenticationError for any other password.
        """
        key_material = _derive_key_material(
            password_text, self.verification_salt, self.derivation_salt, self.kdf
        )
        try:
            value = decrypt(
                self.canary_ciphertext,
                self.canary_tag,
                key_material,
                self.canary_nonce,
                CANARY_ASSOCIATED_DATA,
            )
        except AuthenticationError:
            scrub(key_material)
            raise AuthenticationError("Incorrect master password") from None

        if not hmac.compare_digest(value, CANARY_PLAINTEXT):
            scrub(key_material)
            raise AuthenticationError("Incorrect master password")
        return key_material

    def to_record(self) -> MasterPasswordRecord:
        return MasterPasswordRecord(
            version=self.version,
            verification_salt=encode(self.verification_salt),
            derivation_salt=encode(self.derivation_salt),
            canary=encode(self.canary_nonce + self.canary_ciphertext + self.canary_tag),
            time_cost=self.kdf.time_cost,
            memory_cost=self.kdf.memory_cost,
            parallelism=self.kdf.parallelism,
            iterations=self.kdf.iterations,
        )

    @classmethod
    def from_record(cls, record: MasterPasswordRecord) -> "MasterPassword":
        """Rebuild from a stored record, validating scheme version and field sizes."""
        if record.version != SCHEME_VERSION:
            raise MalformedRecordError(
                f"Unsupported master password scheme version {record.version}"
            )
        verification_salt = decode(record.verification_salt)
        derivation_salt = decode(record.derivation_salt)
        canary = decode(record.canary)

        if len(verification_salt) != SALT_LENGTH or len(derivation_salt) != SALT_LENGTH:
            raise MalformedRecordError(f"Master password salts must be {SALT_LENGTH} bytes")
        if len(canary) < NONCE_LENGTH + TAG_LENGTH:
            raise MalformedRecordError("Master password canary is truncated")
        if min(record.time_cost, record.memory_cost, record.parallelism, record.iterations) < 1:
            raise MalformedRecordError("Master password KDF parameters must be positive")

        return cls(
            verification_salt=verification_salt,
            derivation_salt=derivation_salt,
            canary_nonce=canary[:NONCE_LENGTH],
            canary_ciphertext=canary[NONCE_LENGTH:-TAG_LENGTH],
            canary_tag=canary[-TAG_LENGTH:],
            kdf=KdfParams(
                time_cost=record.time_cost,
                memory_cost=record.memory_cost,
                parallelism=record.parallelism,
                iterations=record.iterations,
            ),
            version=record.version,
        )
