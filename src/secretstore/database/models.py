"""ORM-style helpers for database operations."""

from ..core.records import MasterPasswordRecord, SecretRecord

MASTER_PASSWORD_COLUMNS = (
    "version",
    "verification_salt",
    "derivation_salt",
    "canary",
    "time_cost",
    "memory_cost",
    "parallelism",
    "iterations",
)

SECRET_COLUMNS = ("label", "private_salt", "nonce", "ciphertext", "auth_tag")


class BaseModel:
    """Base class for DB models."""

    __slots__ = ("db",)

    def __init__(self, db):
        """Initialize with a DatabaseConnection."""
        self.db = db


class MasterPasswordModel(BaseModel):
    """DB model for the single master password row."""

    def save(self, record):
        """Insert or replace the master password row."""
        query = f"""
            INSERT INTO master_password (id, {", ".join(MASTER_PASSWORD_COLUMNS)})
            VALUES (1, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                {", ".join(f"{c} = excluded.{c}" for c in MASTER_PASSWORD_COLUMNS)},
                updated_at = CURRENT_TIMESTAMP
        """
        self.db.execute(query, tuple(getattr(record, c) for c in MASTER_PASSWORD_COLUMNS))
        return True

    def get(self):
        """Get the master password row or None."""
        query = f"SELECT {', '.join(MASTER_PASSWORD_COLUMNS)} FROM master_password WHERE id = 1"
        return self.db.fetch_one(query)


class SecretModel(BaseModel):
    """DB model for secrets."""

    def save(self, record):
        """Insert a secret or overwrite the one with the same label."""
        query = """
            INSERT INTO secrets (label, private_salt, nonce, ciphertext, auth_tag)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(label) DO UPDATE SET
                private_salt = excluded.private_salt,
                nonce = excluded.nonce,
                ciphertext = excluded.ciphertext,
                auth_tag = excluded.auth_tag
        """
        self.db.execute(query, tuple(getattr(record, c) for c in SECRET_COLUMNS))
        return True

    def get(self, label):
        """Get secret by label."""
        query = f"SELECT {', '.join(SECRET_COLUMNS)} FROM secrets WHERE label = ?"
        return self.db.fetch_one(query, (label,))

    def list_all(self):
        """List all secrets ordered by label."""
        query = f"SELECT {', '.join(SECRET_COLUMNS)} FROM secrets ORDER BY label"
        return self.db.fetch_all(query)

    def delete(self, label):
        """Delete secret by label; returns True if a row was removed."""
        return self.db.execute("DELETE FROM secrets WHERE label = ?", (label,)) > 0


def row_to_master_password(row):
    """Convert a master_password row dict to a MasterPasswordRecord."""
    return MasterPasswordRecord.from_dict(row)


def row_to_secret(row):
    """Convert a secrets row dict to a SecretRecord."""
    return SecretRecord.from_dict(row)
