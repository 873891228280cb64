"""
Bulk interchange: a JSON document holding the stored records of a whole vault.

Document layout:

    {
        "format": "secretstore",
        "version": 1,
        "master_password": {...MasterPasswordRecord fields...},
        "secrets": [{...SecretRecord fields...}, ...]
    }

Records are copied verbatim; nothing is decrypted or re-derived, so an
export followed by an import reproduces every stored field exactly.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from .exceptions import MalformedRecordError
from .records import MasterPasswordRecord, SecretRecord

logger = logging.getLogger(__name__)

FORMAT_NAME = "secretstore"
FORMAT_VERSION = 1


def build_document(
    master_password: MasterPasswordRecord, secrets: Iterable[SecretRecord]
) -> Dict[str, Any]:
    return {
        "format": FORMAT_NAME,
        "version": FORMAT_VERSION,
        "master_password": master_password.to_dict(),
        "secrets": [s.to_dict() for s in sorted(secrets, key=lambda s: s.label)],
    }


def parse_document(document: Any) -> Tuple[MasterPasswordRecord, List[SecretRecord]]:
    """
    Validate a document and return its records.

    Raises MalformedRecordError for a wrong format marker or version, missing
    or mistyped fields, or the same label appearing twice.
    """
    if not isinstance(document, dict):
        raise MalformedRecordError("Export document must be a JSON object")
    if document.get("format") != FORMAT_NAME:
        raise MalformedRecordError(f"Not a {FORMAT_NAME} export document")
    if document.get("version") != FORMAT_VERSION:
        raise MalformedRecordError(
            f"Unsupported export document version {document.get('version')!r}"
        )
    if "master_password" not in document:
        raise MalformedRecordError("Export document has no master_password")

    master_password = MasterPasswordRecord.from_dict(document["master_password"])

    entries = document.get("secrets", [])
    if not isinstance(entries, list):
        raise MalformedRecordError("Export document 'secrets' must be a list")

    secrets = []
    seen = set()
    for entry in entries:
        record = SecretRecord.from_dict(entry)
        if record.label in seen:
            raise MalformedRecordError(f"Duplicate label {record.label!r} in export document")
        seen.add(record.label)
        secrets.append(record)

    return master_password, secrets


def write_document(path, document: Dict[str, Any]) -> Path:
    """Write ``document`` as UTF-8 JSON readable only by the owner."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with open(fd, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, ensure_ascii=False)
        f.write("\n")
    logger.info("Exported %d secrets to %s", len(document.get("secrets", [])), path)
    return path


def read_document(path) -> Dict[str, Any]:
    path = Path(path).expanduser()
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedRecordError(f"Export document {path} is not valid JSON: {e}") from e
