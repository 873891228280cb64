"""Shared fixtures: cheap KDF costs so the suite runs in seconds."""

import pytest

from secretstore.database.repository import SqliteRepository
from secretstore.security.kdf import KdfParams


@pytest.fixture
def fast_params():
    """Minimal Argon2id/PBKDF2 costs; never use these outside tests."""
    return KdfParams(time_cost=1, memory_cost=8, parallelism=1, iterations=1000)


@pytest.fixture
def repository():
    """In-memory SqliteRepository, closed after the test."""
    repo = SqliteRepository.open(":memory:")
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "secrets.sqlite3.dat"
