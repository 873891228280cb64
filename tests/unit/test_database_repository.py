"""Unit tests for the SQLite-backed Repository."""

import pytest

from secretstore.core.exceptions import MalformedRecordError, RepositoryError
from secretstore.core.records import MasterPasswordRecord, SecretRecord
from secretstore.database.connection import DatabaseConnection
from secretstore.database.repository import SqliteRepository
from secretstore.database.schema import SCHEMA_VERSION

MASTER = MasterPasswordRecord(
    version=1,
    verification_salt="dg==",
    derivation_salt="ZA==",
    canary="Yw==",
    time_cost=1,
    memory_cost=8,
    parallelism=1,
    iterations=1000,
)


def _secret(label):
    return SecretRecord(label=label, private_salt="cw==", nonce="bg==", ciphertext="Y3Q=", auth_tag="dA==")


def test_empty_repository(repository):
    assert repository.load_master_password() is None
    assert repository.load_secret("email") is None
    assert repository.list_secrets() == []


def test_master_password_round_trip(repository):
    repository.save_master_password(MASTER)
    assert repository.load_master_password() == MASTER


def test_secret_round_trip(repository):
    repository.save_secret(_secret("email"))
    assert repository.load_secret("email") == _secret("email")
    repository.delete_secret("email")
    repository.delete_secret("email")
    assert repository.load_secret("email") is None


def test_list_secrets_sorted(repository):
    for label in ("wifi", "bank", "email"):
        repository.save_secret(_secret(label))
    assert [r.label for r in repository.list_secrets()] == ["bank", "email", "wifi"]


def test_transaction_rolls_back(repository):
    with pytest.raises(RepositoryError):
        with repository.transaction():
            repository.save_secret(_secret("email"))
            repository.save_master_password(MASTER)
            raise RepositoryError("simulated")
    assert repository.list_secrets() == []
    assert repository.load_master_password() is None


def test_nested_transaction_joins_outer(repository):
    with pytest.raises(ValueError):
        with repository.transaction():
            with repository.transaction():
                repository.save_secret(_secret("inner"))
            repository.save_secret(_secret("outer"))
            raise ValueError("abort outer")
    assert repository.list_secrets() == []


def test_transaction_commits(repository):
    with repository.transaction() as repo:
        repo.save_secret(_secret("email"))
    assert repository.load_secret("email") == _secret("email")


def test_corrupt_row_is_malformed(repository):
    repository.db.execute(
        "INSERT INTO secrets (label, private_salt, nonce, ciphertext, auth_tag) VALUES (?, ?, ?, ?, ?)",
        ("email", "cw==", b"\x05", "Y3Q=", "dA=="),
    )
    with pytest.raises(MalformedRecordError):
        repository.load_secret("email")


def test_open_file_backed(store_path):
    repo = SqliteRepository.open(store_path)
    repo.save_secret(_secret("email"))
    repo.close()

    again = SqliteRepository.open(store_path)
    try:
        assert again.load_secret("email") == _secret("email")
    finally:
        again.close()


def test_storage_failure_surfaces(repository):
    # a reopened in-memory connection has no schema
    repository.db.close()
    with pytest.raises(RepositoryError):
        repository.list_secrets()


def test_unsupported_schema_version(store_path):
    SqliteRepository.open(store_path).close()
    db = DatabaseConnection(store_path)
    db.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION + 1,))
    db.close()

    with pytest.raises(RepositoryError, match="schema version"):
        SqliteRepository.open(store_path)


def test_new_store_records_schema_version(repository):
    assert repository.db.get_version() == SCHEMA_VERSION
