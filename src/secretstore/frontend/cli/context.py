"""Small helper to build a connected SecretStore context for the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import getpass
import os

from secretstore.core.config import ENV_PASSWORD, Settings
from secretstore.core.vault import VaultSession
from secretstore.database.connection import DatabaseConnection
from secretstore.database.repository import SqliteRepository


class PasswordMismatchError(ValueError):
    # raised when the repeated new password differs from the first entry
    pass


@dataclass
class AppContext:
    """Container for runtime objects a command needs."""

    db: DatabaseConnection
    repository: SqliteRepository
    session: VaultSession
    first_run: bool = False
    settings: Settings = field(default_factory=Settings)

    def close(self) -> None:
        self.session.close()
        self.db.close()


def prompt_password(prompt: str = "Password: ") -> str:
    """
    Return the master password without echoing it.

    ``SECRET_STORE_PASSWORD`` takes precedence so scripts can run unattended.
    """
    from_env = os.getenv(ENV_PASSWORD)
    if from_env:
        return from_env
    return getpass.getpass(prompt)


def prompt_new_password() -> str:
    """Ask twice for a new password; raise PasswordMismatchError if they differ."""
    first = getpass.getpass("New password: ")
    second = getpass.getpass("Repeat new password: ")
    if first != second:
        raise PasswordMismatchError("Passwords do not match")
    return first


def build_context(
    db_path: Optional[str | Path] = None,
    password_text: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> AppContext:
    """
    Open the store and connect to it with the master password.

    First-run behaviour:

    - When the store has no master password yet (new file), the given password
      becomes the master password (``first_run=True``). It must satisfy the
      minimum length.
    - Otherwise the password is verified against the stored master password
      and AuthenticationError propagates on mismatch.
    """
    settings = settings or Settings.from_env()
    db = DatabaseConnection(db_path or settings.store_file)

    try:
        repository = SqliteRepository(db)
        first_run = repository.load_master_password() is None
        if password_text is None:
            password_text = prompt_password(
                "New master password: " if first_run else "Password: "
            )
        session = VaultSession.open(
            repository, password_text, params=settings.kdf, idle_timeout=settings.idle_timeout
        )
    except BaseException:
        db.close()
        raise

    return AppContext(
        db=db, repository=repository, session=session, first_run=first_run, settings=settings
    )
