"""SQLite connection and initialization utilities."""

import sqlite3
from pathlib import Path

from .schema import get_init_schema
from ..core.exceptions import RepositoryError

MEMORY = ":memory:"


class DatabaseConnection:
    """Own one SQLite connection and the store schema."""

    __slots__ = ("db_path", "_connection", "_initialized")

    def __init__(self, db_path=MEMORY):
        """Initialize connection state; nothing is opened yet."""
        self.db_path = db_path if str(db_path) == MEMORY else Path(db_path).expanduser()
        self._connection = None
        self._initialized = False

    def initialize(self):
        """Create the schema if not already created."""
        if self._initialized:
            return

        try:
            if self.db_path != MEMORY:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            conn = self._get_connection()
            for statement in get_init_schema():
                conn.execute(statement)
            self._initialized = True

        except (sqlite3.Error, OSError) as e:
            raise RepositoryError(f"Failed to initialize database: {e}") from e

    def _get_connection(self):
        """Get or open the SQLite connection (autocommit; BEGIN is explicit)."""
        if self._connection is None:
            self._connection = sqlite3.connect(str(self.db_path), isolation_level=None)
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def get_transaction_context(self):
        """Return a transaction context manager (BEGIN/COMMIT/ROLLBACK)."""
        return TransactionContext(self._get_connection())

    def execute(self, query, params=()):
        """Execute a single SQL statement and return the affected row count."""
        try:
            cursor = self._get_connection().execute(query, params)
            try:
                return cursor.rowcount
            finally:
                cursor.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Database write failed: {e}") from e

    def fetch_one(self, query, params=()):
        """Fetch a single row as a dict or None."""
        try:
            cursor = self._get_connection().execute(query, params)
            try:
                row = cursor.fetchone()
            finally:
                cursor.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Database read failed: {e}") from e
        return dict(row) if row else None

    def fetch_all(self, query, params=()):
        """Fetch all rows as a list of dicts."""
        try:
            cursor = self._get_connection().execute(query, params)
            try:
                rows = cursor.fetchall()
            finally:
                cursor.close()
        except sqlite3.Error as e:
            raise RepositoryError(f"Database read failed: {e}") from e
        return [dict(row) for row in rows]

    def get_version(self):
        """Return current schema version number."""
        try:
            result = self.fetch_one("SELECT MAX(version) as version FROM schema_version")
            return result["version"] if result and result["version"] else 0
        except RepositoryError:
            return 0

    def close(self):
        """Close the connection if open."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self._initialized = False


class TransactionContext:
    """Context manager for transactions (BEGIN/COMMIT/ROLLBACK)."""

    __slots__ = ("connection",)

    def __init__(self, connection):
        """Initialize with a SQLite connection."""
        self.connection = connection

    def __enter__(self):
        """Begin a transaction."""
        try:
            self.connection.execute("BEGIN")
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to begin transaction: {e}") from e
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Commit on success, rollback on error."""
        try:
            if exc_type is None:
                self.connection.execute("COMMIT")
            else:
                self.connection.execute("ROLLBACK")
        except sqlite3.Error as e:
            if exc_type is None:
                raise RepositoryError(f"Failed to commit transaction: {e}") from e
            raise RepositoryError(f"Failed to roll back transaction: {e}") from exc_val
        return False
