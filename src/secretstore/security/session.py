"""In-memory holder for the unlocked key material of an open vault.

A KeySession owns exactly one key buffer. It copies whatever it is given into
a private bytearray so the buffer can be zeroed on lock() or replace(). An
optional idle timeout locks the holder when it is accessed after sitting
unused for too long; nothing runs in the background.
"""
from __future__ import annotations

import time
from typing import Optional

from secretstore.core.exceptions import SessionLockedError

from .cipher import scrub


class KeySession:
    def __init__(self, idle_timeout: Optional[float] = None):
        self.idle_timeout = idle_timeout
        self._key: Optional[bytearray] = None
        self._expires_at: Optional[float] = None

    @property
    def locked(self) -> bool:
        return self._key is None

    def unlock(self, key_material: bytes | bytearray) -> None:
        """Take ownership of a copy of ``key_material`` and unlock."""
        if self._key is not None:
            scrub(self._key)
        self._key = bytearray(key_material)
        self._touch()

    def get_key(self) -> bytearray:
        """Return the unlocked key material or raise if locked/expired."""
        if self._key is None:
            raise SessionLockedError("Session is locked")
        if self._expires_at is not None and time.time() > self._expires_at:
            # auto-lock on expiry
            self.lock()
            raise SessionLockedError("Session expired and was locked")
        self._touch()
        return self._key

    def replace(self, key_material: bytes | bytearray) -> None:
        """Swap in new key material, zeroing the old buffer."""
        if self._key is None:
            raise SessionLockedError("Session is locked")
        self.unlock(key_material)

    def lock(self) -> None:
        """Zero the key material and lock."""
        try:
            if self._key is not None:
                scrub(self._key)
        finally:
            self._key = None
            self._expires_at = None

    def _touch(self) -> None:
        if self.idle_timeout is None:
            self._expires_at = None
        else:
            self._expires_at = time.time() + float(self.idle_timeout)
