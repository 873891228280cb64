"""
Repository: the persistence boundary of the vault.

VaultSession only talks to the Repository protocol below. SqliteRepository is
the shipped implementation; it maps records to rows through the models in
database/models.py and reports every SQLite failure as RepositoryError.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol

from ..core.exceptions import RepositoryError
from ..core.records import MasterPasswordRecord, SecretRecord
from .connection import DatabaseConnection
from .models import MasterPasswordModel, SecretModel, row_to_master_password, row_to_secret
from .schema import SCHEMA_VERSION

logger = logging.getLogger(__name__)


class Repository(Protocol):
    """Operations the vault needs from storage.

    Implementations must keep at most one record per label and must not leave
    a failed save half applied. A ``transaction()`` context manager is
    optional; when present, the vault uses it to make rotation and import
    all-or-nothing.
    """

    def save_master_password(self, record: MasterPasswordRecord) -> None: ...

    def load_master_password(self) -> Optional[MasterPasswordRecord]: ...

    def save_secret(self, record: SecretRecord) -> None: ...

    def load_secret(self, label: str) -> Optional[SecretRecord]: ...

    def delete_secret(self, label: str) -> None: ...

    def list_secrets(self) -> List[SecretRecord]: ...


class SqliteRepository:
    """Repository backed by a DatabaseConnection."""

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self.db.initialize()
        version = self.db.get_version()
        if version != SCHEMA_VERSION:
            self.db.close()
            raise RepositoryError(
                f"Store schema version {version} is not supported (expected {SCHEMA_VERSION})"
            )
        self.passwords = MasterPasswordModel(db)
        self.secrets = SecretModel(db)
        self._depth = 0

    @classmethod
    def open(cls, db_path) -> "SqliteRepository":
        """Open (creating if needed) the SQLite store at ``db_path``."""
        return cls(DatabaseConnection(db_path))

    def save_master_password(self, record: MasterPasswordRecord) -> None:
        self.passwords.save(record)

    def load_master_password(self) -> Optional[MasterPasswordRecord]:
        row = self.passwords.get()
        return row_to_master_password(row) if row else None

    def save_secret(self, record: SecretRecord) -> None:
        self.secrets.save(record)

    def load_secret(self, label: str) -> Optional[SecretRecord]:
        row = self.secrets.get(label)
        return row_to_secret(row) if row else None

    def delete_secret(self, label: str) -> None:
        if self.secrets.delete(label):
            logger.debug("Deleted secret %r", label)

    def list_secrets(self) -> List[SecretRecord]:
        return [row_to_secret(row) for row in self.secrets.list_all()]

    @contextmanager
    def transaction(self) -> Iterator["SqliteRepository"]:
        """Group writes into one SQLite transaction; nested calls join the outer one."""
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            with self.db.get_transaction_context():
                yield self
        finally:
            self._depth = 0

    def close(self) -> None:
        self.db.close()
