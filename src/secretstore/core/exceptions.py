"""
Exceptions for the SecretStore core
Everything derives from SecretStoreError so callers have one general error catcher
"""


class SecretStoreError(Exception):
    # general container for errors
    pass


class WeaknessError(SecretStoreError):
    # raised when a password is shorter than the minimum length, before any crypto work
    pass


class AuthenticationError(SecretStoreError):
    # raised on a wrong password or when authenticated decryption fails
    pass


class MalformedRecordError(SecretStoreError):
    # raised when a stored or imported record is missing fields or cannot be parsed
    pass


class EncodingError(MalformedRecordError):
    # raised when an encoded binary field cannot be decoded
    pass


class RepositoryError(SecretStoreError):
    # raised when the persistence layer fails; never retried by the core
    pass


class VaultExistsError(SecretStoreError):
    # raised when importing into a store that already has a master password
    pass


class SessionLockedError(SecretStoreError):
    # raised when a closed, locked or expired session is used
    pass


class RotationError(SecretStoreError):
    """Raised when a master password rotation does not complete.

    ``step`` is ``"re-encryption"`` or ``"persistence"``; ``label`` names the
    secret being processed when the failure happened, if any. The underlying
    error is chained as ``__cause__``.
    """

    REENCRYPTION = "re-encryption"
    PERSISTENCE = "persistence"

    def __init__(self, step, label=None, message=None):
        self.step = step
        self.label = label
        if message is None:
            message = f"Password rotation failed during {step}"
            if label is not None:
                message += f" of secret {label!r}"
        super().__init__(message)
