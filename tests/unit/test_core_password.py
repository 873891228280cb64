"""
Unit tests for MasterPassword creation, verification and record mapping.
"""

import dataclasses

import pytest

from secretstore.core.exceptions import AuthenticationError, MalformedRecordError, WeaknessError
from secretstore.core.password import (
    SCHEME_VERSION,
    MasterPassword,
    check_password_strength,
)
from secretstore.security.cipher import decode, encode


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def master(fast_params):
    return MasterPassword.create("Sup3rSecret!", fast_params)


# ==============================================================================
# Tests: Strength policy
# ==============================================================================

@pytest.mark.parametrize("text", ["", "short", "1234567"])
def test_short_passwords_rejected(text):
    with pytest.raises(WeaknessError, match="Minimum 8 characters"):
        check_password_strength(text)


def test_eight_characters_accepted():
    check_password_strength("12345678")


def test_create_rejects_weak_before_kdf(fast_params, monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("KDF must not run for a weak password")

    monkeypatch.setattr("secretstore.core.password.hash_password", boom)
    with pytest.raises(WeaknessError):
        MasterPassword.create("short", fast_params)


# ==============================================================================
# Tests: Verification
# ==============================================================================

def test_verify_returns_key_material(master):
    key = master.verify("Sup3rSecret!")
    assert isinstance(key, bytearray)
    assert len(key) == 32


def test_verify_is_deterministic(master):
    assert master.verify("Sup3rSecret!") == master.verify("Sup3rSecret!")


def test_establish_key_matches_verify(fast_params):
    password, key = MasterPassword.establish("Sup3rSecret!", fast_params)
    assert password.verify("Sup3rSecret!") == key


def test_verify_wrong_password(master):
    with pytest.raises(AuthenticationError, match="Incorrect master password"):
        master.verify("Sup3rSecret?")


def test_verify_short_wrong_password_is_authentication_error(master):
    """Verification applies no length policy."""
    with pytest.raises(AuthenticationError):
        master.verify("wrong")


def test_same_password_different_salts(fast_params):
    a = MasterPassword.create("Sup3rSecret!", fast_params)
    b = MasterPassword.create("Sup3rSecret!", fast_params)
    assert a.verification_salt != b.verification_salt
    assert a.verify("Sup3rSecret!") != b.verify("Sup3rSecret!")


def test_tampered_canary_fails(master):
    bad = dataclasses.replace(
        master, canary_tag=bytes([master.canary_tag[0] ^ 1]) + master.canary_tag[1:]
    )
    with pytest.raises(AuthenticationError):
        bad.verify("Sup3rSecret!")


# ==============================================================================
# Tests: Records
# ==============================================================================

def test_record_round_trip(master, fast_params):
    record = master.to_record()
    assert record.version == SCHEME_VERSION
    assert record.iterations == fast_params.iterations

    restored = MasterPassword.from_record(record)
    assert restored == master
    assert restored.verify("Sup3rSecret!") == master.verify("Sup3rSecret!")


def test_from_record_unknown_version(master):
    record = dataclasses.replace(master.to_record(), version=2)
    with pytest.raises(MalformedRecordError, match="version"):
        MasterPassword.from_record(record)


def test_from_record_short_salt(master):
    record = dataclasses.replace(master.to_record(), verification_salt=encode(b"x" * 8))
    with pytest.raises(MalformedRecordError, match="salts"):
        MasterPassword.from_record(record)


def test_from_record_truncated_canary(master):
    canary = decode(master.to_record().canary)[:20]
    record = dataclasses.replace(master.to_record(), canary=encode(canary))
    with pytest.raises(MalformedRecordError, match="truncated"):
        MasterPassword.from_record(record)


def test_from_record_bad_encoding(master):
    record = dataclasses.replace(master.to_record(), derivation_salt="***")
    with pytest.raises(MalformedRecordError):
        MasterPassword.from_record(record)


def test_from_record_zero_cost(master):
    record = dataclasses.replace(master.to_record(), iterations=0)
    with pytest.raises(MalformedRecordError, match="positive"):
        MasterPassword.from_record(record)
