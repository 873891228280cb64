"""
Command line interface for SecretStore.

Usage:
    secretstore [--db FILE] [--verbose] list
    secretstore read LABEL [--copy]
    secretstore write LABEL [CONTENT]
    secretstore delete LABEL
    secretstore passwd
    secretstore export [FILE]
    secretstore import FILE
    secretstore chars LABEL POS [POS ...]

The master password is prompted for without echo, or taken from
SECRET_STORE_PASSWORD. Run with `python -m secretstore.frontend.cli.app`.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import re
import sys
from typing import Iterable, Optional

from secretstore.core.config import Settings
from secretstore.core.exceptions import (
    AuthenticationError,
    MalformedRecordError,
    RepositoryError,
    RotationError,
    SecretStoreError,
    WeaknessError,
)
from secretstore.core.vault import VaultSession
from secretstore.database.repository import SqliteRepository
from secretstore.frontend.cli.clipboard import ClipboardUnavailable, copy_to_clipboard
from secretstore.frontend.cli.context import (
    AppContext,
    PasswordMismatchError,
    build_context,
    prompt_new_password,
    prompt_password,
)
from secretstore.frontend.cli.logging_config import configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

_BANK_PASSWORD = re.compile(r"pw:\s*([a-zA-Z0-9_-]+)", re.IGNORECASE)


def bank_login_characters(text: str, positions: Iterable[int]) -> str:
    """
    Pick characters out of the ``pw:`` value stored in a secret.

    Positions are 1-based, as banks ask for them ("3rd, 5th and 8th
    character"). The picked characters are joined with spaces.
    """
    match = _BANK_PASSWORD.search(text)
    if match is None:
        raise ValueError("Secret has no 'pw:' entry")
    password = match.group(1)
    picked = []
    for pos in positions:
        if pos < 1 or pos > len(password):
            raise ValueError(f"Position {pos} is outside the password (length {len(password)})")
        picked.append(password[pos - 1])
    return " ".join(picked)


def _describe(error: BaseException) -> str:
    # Map error kinds to user-facing messages.
    if isinstance(error, WeaknessError):
        return str(error)
    if isinstance(error, AuthenticationError):
        return f"Authentication failed: {error}"
    if isinstance(error, RotationError):
        cause = error.__cause__
        detail = f" ({cause})" if cause is not None else ""
        return f"{error}{detail}. The previous password is still active for this session."
    if isinstance(error, MalformedRecordError):
        return f"Malformed record: {error}"
    if isinstance(error, RepositoryError):
        return f"Storage error: {error}"
    return str(error)


# === Command handlers ===


def cmd_list(ctx: AppContext, args) -> int:
    for label in sorted(ctx.session.list_labels()):
        print(label)
    return EXIT_OK


def cmd_read(ctx: AppContext, args) -> int:
    plaintext = ctx.session.read(args.label)
    if plaintext is None:
        print(f"No secret labelled {args.label!r}", file=sys.stderr)
        return EXIT_ERROR
    if args.copy:
        copy_to_clipboard(plaintext)
        print(f"Copied {args.label!r} to clipboard", file=sys.stderr)
    else:
        print(plaintext)
    return EXIT_OK


def cmd_write(ctx: AppContext, args) -> int:
    content = args.content
    if content is None:
        content = getpass.getpass("Secret content: ")
    ctx.session.write(args.label, content)
    return EXIT_OK


def cmd_delete(ctx: AppContext, args) -> int:
    ctx.session.delete(args.label)
    return EXIT_OK


def cmd_passwd(ctx: AppContext, args) -> int:
    new_password = prompt_new_password()
    ctx.session.rotate_password(new_password)
    print("Master password changed", file=sys.stderr)
    return EXIT_OK


def cmd_export(ctx: AppContext, args) -> int:
    path = ctx.session.export_to(args.file or ctx.settings.export_file)
    print(f"Exported to {path}", file=sys.stderr)
    return EXIT_OK


def cmd_chars(ctx: AppContext, args) -> int:
    plaintext = ctx.session.read(args.label)
    if plaintext is None:
        print(f"No secret labelled {args.label!r}", file=sys.stderr)
        return EXIT_ERROR
    print(bank_login_characters(plaintext, args.positions))
    return EXIT_OK


def cmd_import(args, settings: Settings) -> int:
    # Runs without an AppContext: the store must not be initialised first.
    repository = SqliteRepository.open(args.db or settings.store_file)
    try:
        password_text = prompt_password("Password of exported store: ")
        session = VaultSession.import_from(
            repository, password_text, args.file, idle_timeout=settings.idle_timeout
        )
        count = len(session.list_labels())
        session.close()
    finally:
        repository.close()
    print(f"Imported {count} secrets from {args.file}", file=sys.stderr)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="secretstore", description="Local encrypted secret store")
    parser.add_argument("--db", default=None, help="SQLite store file (default: $SECRET_STORE_FILE)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log to stderr at INFO level")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="list secret labels").set_defaults(handler=cmd_list)

    p = sub.add_parser("read", help="print a secret")
    p.add_argument("label")
    p.add_argument("--copy", action="store_true", help="copy to clipboard instead of printing")
    p.set_defaults(handler=cmd_read)

    p = sub.add_parser("write", help="create or overwrite a secret")
    p.add_argument("label")
    p.add_argument("content", nargs="?", default=None, help="prompted without echo if omitted")
    p.set_defaults(handler=cmd_write)

    p = sub.add_parser("delete", help="delete a secret")
    p.add_argument("label")
    p.set_defaults(handler=cmd_delete)

    sub.add_parser("passwd", help="change the master password").set_defaults(handler=cmd_passwd)

    p = sub.add_parser("export", help="export all records to a JSON document")
    p.add_argument("file", nargs="?", default=None)
    p.set_defaults(handler=cmd_export)

    p = sub.add_parser("import", help="create a new store from an export document")
    p.add_argument("file")
    p.set_defaults(handler=None)

    p = sub.add_parser("chars", help="show characters of a 'pw:' value by 1-based position")
    p.add_argument("label")
    p.add_argument("positions", nargs="+", type=int)
    p.set_defaults(handler=cmd_chars)

    return parser


# Main entry point
def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    configure_logging(logging.INFO if args.verbose else settings.log_level)

    try:
        if args.handler is None:
            return cmd_import(args, settings)

        ctx = build_context(db_path=args.db, settings=settings)
        try:
            if ctx.first_run:
                print("Created new secret store", file=sys.stderr)
            return args.handler(ctx, args)
        finally:
            ctx.close()
    except (SecretStoreError, PasswordMismatchError, ClipboardUnavailable, ValueError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {_describe(e)}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
