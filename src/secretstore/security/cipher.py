"""Authenticated encryption and storage encoding primitives.

All encryption is AES-256-GCM with a 96-bit nonce. The library appends the
128-bit tag to the ciphertext; here it is split off so records can store the
ciphertext and the tag as separate fields.

Binary values are stored as URL-safe base64 text.
"""
import base64
import binascii
import os
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from secretstore.core.exceptions import AuthenticationError, EncodingError

NONCE_LENGTH = 12
TAG_LENGTH = 16


def encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii")


def decode(text: str) -> bytes:
    """Inverse of :func:`encode`; rejects anything that is not strict URL-safe base64."""
    if not isinstance(text, str):
        raise EncodingError(f"Expected encoded text, got {type(text).__name__}")
    if "+" in text or "/" in text:
        raise EncodingError("Malformed encoded value: standard base64 alphabet is not accepted")
    try:
        return base64.b64decode(text.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"Malformed encoded value: {e}") from e


def generate_nonce() -> bytes:
    return os.urandom(NONCE_LENGTH)


def encrypt(
    plaintext: bytes,
    key: bytes,
    nonce: bytes,
    associated_data: bytes = b"",
) -> Tuple[bytes, bytes]:
    """
    Encrypt ``plaintext`` and return ``(ciphertext, tag)``.

    Never reuse a nonce with the same key; callers generate a fresh one per
    call with :func:`generate_nonce`.
    """
    sealed = AESGCM(key).encrypt(nonce, bytes(plaintext), associated_data)
    return sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]


def decrypt(
    ciphertext: bytes,
    tag: bytes,
    key: bytes,
    nonce: bytes,
    associated_data: bytes = b"",
) -> bytes:
    """
    Decrypt and authenticate; raise ``AuthenticationError`` on any mismatch.

    The tag is verified before any plaintext is released.
    """
    try:
        return AESGCM(key).decrypt(nonce, bytes(ciphertext) + bytes(tag), associated_data)
    except InvalidTag as e:
        raise AuthenticationError("Authenticated decryption failed") from e


def scrub(buffer) -> None:
    """Overwrite a mutable key buffer with zeros (best-effort)."""
    if isinstance(buffer, bytearray):
        for i in range(len(buffer)):
            buffer[i] = 0
