"""
Unit tests for AES-256-GCM helpers and the storage encoding.
"""

import pytest

from secretstore.core.exceptions import AuthenticationError, EncodingError, MalformedRecordError
from secretstore.security.cipher import (
    NONCE_LENGTH,
    TAG_LENGTH,
    decode,
    decrypt,
    encode,
    encrypt,
    generate_nonce,
    scrub,
)

KEY = b"k" * 32


# ==============================================================================
# Encoding
# ==============================================================================

def test_encode_is_urlsafe():
    text = encode(b"\xfb\xff\xfe" * 4)
    assert "+" not in text and "/" not in text
    assert decode(text) == b"\xfb\xff\xfe" * 4


def test_encode_accepts_bytearray():
    assert decode(encode(bytearray(b"abc"))) == b"abc"


@pytest.mark.parametrize("bad", ["not base64!", "abc", "ab=c"])
def test_decode_rejects_garbage(bad):
    with pytest.raises(EncodingError):
        decode(bad)


def test_decode_rejects_non_text():
    with pytest.raises(EncodingError):
        decode(b"YWJj")


def test_encoding_error_is_malformed_record():
    assert issubclass(EncodingError, MalformedRecordError)


# ==============================================================================
# AEAD
# ==============================================================================

def test_encrypt_decrypt_with_detached_tag():
    nonce = generate_nonce()
    ciphertext, tag = encrypt(b"hunter2", KEY, nonce, b"email")

    assert len(nonce) == NONCE_LENGTH
    assert len(tag) == TAG_LENGTH
    assert len(ciphertext) == len(b"hunter2")
    assert decrypt(ciphertext, tag, KEY, nonce, b"email") == b"hunter2"


def test_empty_plaintext():
    nonce = generate_nonce()
    ciphertext, tag = encrypt(b"", KEY, nonce)
    assert ciphertext == b""
    assert decrypt(ciphertext, tag, KEY, nonce) == b""


def test_decrypt_wrong_key():
    nonce = generate_nonce()
    ciphertext, tag = encrypt(b"data", KEY, nonce)
    with pytest.raises(AuthenticationError):
        decrypt(ciphertext, tag, b"x" * 32, nonce)


def test_decrypt_wrong_associated_data():
    nonce = generate_nonce()
    ciphertext, tag = encrypt(b"data", KEY, nonce, b"email")
    with pytest.raises(AuthenticationError):
        decrypt(ciphertext, tag, KEY, nonce, b"bank")


def test_decrypt_tampered_tag():
    nonce = generate_nonce()
    ciphertext, tag = encrypt(b"data", KEY, nonce)
    bad_tag = bytes([tag[0] ^ 1]) + tag[1:]
    with pytest.raises(AuthenticationError):
        decrypt(ciphertext, bad_tag, KEY, nonce)


def test_decrypt_accepts_bytearray_key():
    nonce = generate_nonce()
    ciphertext, tag = encrypt(b"data", bytearray(KEY), nonce)
    assert decrypt(ciphertext, tag, bytearray(KEY), nonce) == b"data"


# ==============================================================================
# Scrubbing
# ==============================================================================

def test_scrub_zeroes_bytearray():
    buf = bytearray(b"secret key")
    scrub(buf)
    assert buf == bytearray(len(b"secret key"))


def test_scrub_ignores_immutable():
    value = b"abc"
    scrub(value)
    assert value == b"abc"


@pytest.mark.parametrize("standard", ["ab+/", "+AAA", "AAA/"])
def test_decode_rejects_standard_alphabet(standard):
    with pytest.raises(EncodingError, match="standard base64"):
        decode(standard)


def test_decrypt_tampered_ciphertext():
    nonce = generate_nonce()
    ciphertext, tag = encrypt(b"data", KEY, nonce)
    bad = bytes([ciphertext[0] ^ 1]) + ciphertext[1:]
    with pytest.raises(AuthenticationError):
        decrypt(bad, tag, KEY, nonce)
