"""Unit tests for the JSON interchange document."""

import json
import os
import stat

import pytest

from secretstore.core.exceptions import MalformedRecordError
from secretstore.core.interchange import (
    FORMAT_NAME,
    FORMAT_VERSION,
    build_document,
    parse_document,
    read_document,
    write_document,
)
from secretstore.core.records import MasterPasswordRecord, SecretRecord

MASTER = MasterPasswordRecord(
    version=1,
    verification_salt="c2FsdA==",
    derivation_salt="c2FsdA==",
    canary="Y2FuYXJ5",
    time_cost=1,
    memory_cost=8,
    parallelism=1,
    iterations=1000,
)


def _secret(label):
    return SecretRecord(label=label, private_salt="cw==", nonce="bg==", ciphertext="", auth_tag="dA==")


@pytest.fixture
def document():
    return build_document(MASTER, [_secret("wifi"), _secret("email")])


def test_build_document_layout(document):
    assert document["format"] == FORMAT_NAME
    assert document["version"] == FORMAT_VERSION
    assert document["master_password"] == MASTER.to_dict()
    assert [s["label"] for s in document["secrets"]] == ["email", "wifi"]


def test_parse_document_returns_records(document):
    master, secrets = parse_document(document)
    assert master == MASTER
    assert secrets == [_secret("email"), _secret("wifi")]


def test_parse_document_without_secrets(document):
    del document["secrets"]
    assert parse_document(document)[1] == []


@pytest.mark.parametrize(
    "mutate,match",
    [
        (lambda d: d.update(format="other"), "Not a"),
        (lambda d: d.update(version=99), "version"),
        (lambda d: d.pop("master_password"), "master_password"),
        (lambda d: d.update(secrets={"email": {}}), "list"),
        (lambda d: d["secrets"].append(dict(d["secrets"][0])), "Duplicate"),
        (lambda d: d["secrets"][0].pop("nonce"), "nonce"),
    ],
)
def test_parse_document_rejects(document, mutate, match):
    mutate(document)
    with pytest.raises(MalformedRecordError, match=match):
        parse_document(document)


def test_parse_document_rejects_non_object():
    with pytest.raises(MalformedRecordError):
        parse_document(["not", "a", "document"])


def test_write_and_read_document(tmp_path, document):
    path = write_document(tmp_path / "nested" / "export.json", document)

    assert path.exists()
    assert read_document(path) == document
    assert json.loads(path.read_text(encoding="utf-8")) == document
    if os.name == "posix":
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_read_document_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedRecordError, match="not valid JSON"):
        read_document(path)


def test_read_document_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_document(tmp_path / "absent.json")
