"""
VaultSession: a repository combined with the unlocked key material for it.

An open session is the only place key material lives. Every Secret operation
gets that key material passed in explicitly; nothing is kept in module state.

Security Note:
    Never log plaintext, passwords or key material. Only labels and counts.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from typing import Dict, List, Optional, Set, Tuple

from ..security.cipher import scrub
from ..security.kdf import KdfParams
from ..security.session import KeySession
from .exceptions import AuthenticationError, RotationError, SecretStoreError, VaultExistsError
from .interchange import build_document, parse_document, read_document, write_document
from .password import MasterPassword, check_password_strength
from .secret import Secret

logger = logging.getLogger(__name__)


def _transaction(repository):
    # Repositories without transactions get a no-op context.
    begin = getattr(repository, "transaction", None)
    return begin() if begin is not None else nullcontext()


class VaultSession:
    """
    Connected vault. Build with :meth:`open` or :meth:`import_from`.

    The session holds no password text, only the key material derived from it.
    """

    def __init__(
        self,
        repository,
        password: MasterPassword,
        key_material: bytearray,
        idle_timeout: Optional[float] = None,
    ):
        self.repository = repository
        self._password = password
        self._keys = KeySession(idle_timeout=idle_timeout)
        self._keys.unlock(key_material)
        scrub(key_material)
        # (password, key) pairs of rotations whose persistence failed, newest last
        self._pending: List[Tuple[MasterPassword, bytearray]] = []

    # ------------------------------------------------------------------
    # Connecting
    # ------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        repository,
        password_text: str,
        params: Optional[KdfParams] = None,
        idle_timeout: Optional[float] = None,
    ) -> "VaultSession":
        """
        Verify ``password_text`` against the stored master password.

        An empty repository is initialised instead: the password must pass the
        length policy, and a new master password is created and saved.
        """
        record = repository.load_master_password()
        if record is not None:
            password = MasterPassword.from_record(record)
            key_material = password.verify(password_text)
            logger.debug("Opened vault with existing master password")
        else:
            password, key_material = MasterPassword.establish(password_text, params)
            try:
                repository.save_master_password(password.to_record())
            except BaseException:
                scrub(key_material)
                raise
            logger.info("Initialised new vault")
        return cls(repository, password, key_material, idle_timeout=idle_timeout)

    @classmethod
    def import_from(
        cls,
        repository,
        password_text: str,
        path,
        idle_timeout: Optional[float] = None,
    ) -> "VaultSession":
        """
        Populate an empty repository from an export document and connect to it.

        The password is checked against the document before anything is written.
        """
        master_record, secret_records = parse_document(read_document(path))
        password = MasterPassword.from_record(master_record)
        for record in secret_records:
            Secret.from_record(record)

        key_material = password.verify(password_text)
        try:
            if repository.load_master_password() is not None:
                raise VaultExistsError("Store already has a master password; refusing to import")
            with _transaction(repository):
                repository.save_master_password(master_record)
                for record in secret_records:
                    repository.save_secret(record)
        except BaseException:
            scrub(key_material)
            raise

        logger.info("Imported %d secrets from %s", len(secret_records), path)
        return cls(repository, password, key_material, idle_timeout=idle_timeout)

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    @property
    def password(self) -> MasterPassword:
        return self._password

    @property
    def closed(self) -> bool:
        return self._keys.locked

    @property
    def _iterations(self) -> int:
        return self._password.kdf.iterations

    def write(self, label: str, plaintext: str) -> None:
        """Store ``plaintext`` under ``label``, overwriting any existing secret."""
        key = self._keys.get_key()
        record = self.repository.load_secret(label)
        if record is not None:
            secret = Secret.from_record(record).replace(plaintext, key, self._iterations)
        else:
            secret = Secret.create(label, plaintext, key, self._iterations)
        self.repository.save_secret(secret.to_record())
        logger.debug("Wrote secret %r", label)

    def read(self, label: str) -> Optional[str]:
        """Return the plaintext for ``label``, or None if there is no such secret."""
        key = self._keys.get_key()
        record = self.repository.load_secret(label)
        if record is None:
            return None
        return Secret.from_record(record).decrypt(key, self._iterations)

    def delete(self, label: str) -> None:
        """Remove the secret; deleting a missing label is not an error."""
        self._keys.get_key()
        self.repository.delete_secret(label)

    def list_labels(self) -> Set[str]:
        self._keys.get_key()
        return {record.label for record in self.repository.list_secrets()}

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    def rotate_password(self, new_password_text: str) -> MasterPassword:
        """
        Change the master password and re-encrypt every secret to match.

        All records are re-encrypted in memory first; only when every one
        succeeds are they persisted, with the new master password saved last.
        The session keeps using the old key material until all of that has
        completed. On failure a RotationError names the step that failed.

        If persistence fails part way on a repository without transactions,
        calling this again finishes the job: records already written under an
        unfinished attempt's key are recognised and carried over.
        """
        check_password_strength(new_password_text)
        old_key = self._keys.get_key()
        new_password, new_key = self._new_credentials(new_password_text)
        reused = any(new_password is password for password, _ in self._pending)

        records = self.repository.list_secrets()
        logger.info("Rotating master password for %d secrets", len(records))

        candidates = []
        for record in records:
            try:
                secret = Secret.from_record(record)
                try:
                    plaintext = secret.decrypt(old_key, self._iterations)
                except AuthenticationError:
                    password, plaintext = self._decrypt_pending(secret)
                    if password is new_password:
                        continue
                candidates.append(secret.replace(plaintext, new_key, new_password.kdf.iterations))
            except SecretStoreError as e:
                if not reused:
                    scrub(new_key)
                raise RotationError(RotationError.REENCRYPTION, record.label) from e

        label = None
        try:
            with _transaction(self.repository):
                for secret in candidates:
                    label = secret.label
                    self.repository.save_secret(secret.to_record())
                label = None
                self.repository.save_master_password(new_password.to_record())
        except Exception as e:
            if not reused:
                self._pending.append((new_password, new_key))
            logger.warning("Password rotation could not be persisted; old password still active")
            raise RotationError(RotationError.PERSISTENCE, label) from e

        self._keys.replace(new_key)
        self._password = new_password
        self._discard_pending()
        if not reused:
            scrub(new_key)
        logger.info("Master password rotated")
        return new_password

    def _new_credentials(self, new_password_text: str):
        # Reuse an unfinished attempt made with the same new password.
        for password, key in reversed(self._pending):
            try:
                scrub(password.verify(new_password_text))
            except AuthenticationError:
                continue
            return password, key
        return MasterPassword.establish(new_password_text, self._password.kdf)

    def _decrypt_pending(self, secret: Secret):
        for password, key in reversed(self._pending):
            try:
                return password, secret.decrypt(key, password.kdf.iterations)
            except AuthenticationError:
                continue
        raise AuthenticationError(f"Secret {secret.label!r} does not decrypt with the current key")

    def _discard_pending(self) -> None:
        for _, key in self._pending:
            scrub(key)
        self._pending = []

    # ------------------------------------------------------------------
    # Bulk export
    # ------------------------------------------------------------------

    def export_to(self, path):
        """Write every stored record verbatim to an interchange document."""
        return write_document(path, self.export_document())

    def export_document(self) -> Dict:
        """Build the interchange document without writing it anywhere."""
        self._keys.get_key()
        return build_document(
            self.repository.load_master_password(), self.repository.list_secrets()
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Zero all key material held by this session."""
        self._keys.lock()
        self._discard_pending()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
