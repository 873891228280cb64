"""SQLite schema definitions for SecretStore."""

# SQL schema definitions
SCHEMA_VERSION = 1

CREATE_TABLES = [
    # Master password table - a single row (id = 1), replaced wholesale on rotation
    """
    CREATE TABLE IF NOT EXISTS master_password (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL,
        verification_salt TEXT NOT NULL,
        derivation_salt TEXT NOT NULL,
        canary TEXT NOT NULL,
        time_cost INTEGER NOT NULL,
        memory_cost INTEGER NOT NULL,
        parallelism INTEGER NOT NULL,
        iterations INTEGER NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # Secrets table - one row per label, all binary fields base64 text
    """
    CREATE TABLE IF NOT EXISTS secrets (
        label TEXT PRIMARY KEY,
        private_salt TEXT NOT NULL,
        nonce TEXT NOT NULL,
        ciphertext TEXT NOT NULL,
        auth_tag TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # Schema version table
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]

# Triggers for automatic timestamp updates
CREATE_TRIGGERS = [
    """
    CREATE TRIGGER IF NOT EXISTS update_secrets_timestamp
    AFTER UPDATE OF private_salt, nonce, ciphertext, auth_tag ON secrets
    FOR EACH ROW
    BEGIN
        UPDATE secrets SET updated_at = CURRENT_TIMESTAMP
        WHERE label = NEW.label;
    END
    """,
]


RECORD_SCHEMA_VERSION = (
    f"INSERT OR IGNORE INTO schema_version (version) VALUES ({SCHEMA_VERSION})"
)


def get_init_schema():
    """
    Statements that create the store schema; safe to run on every open.

    Returns:
        List of SQL statements, tables before triggers, version row last
    """
    return [*CREATE_TABLES, *CREATE_TRIGGERS, RECORD_SCHEMA_VERSION]
