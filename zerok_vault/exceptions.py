"""
Vault Exception Classes.

Codec-level failures (``AuthenticationFailed``, ``DecryptionFailed``) are
raised by the crypto layer; ``VaultSession`` translates them into the
user-facing outcomes (``InvalidCredentials``, ``Undecryptable``).
"""
from typing import Optional


class VaultError(Exception):
    """Base exception for vault operations"""


# ---------------------------------------------------------------------------
# Codec level
# ---------------------------------------------------------------------------

class AuthenticationFailed(VaultError):
    """Raised when an AEAD tag does not verify or the sealed input is malformed"""


class DecryptionFailed(VaultError):
    """Raised when the vault master key cannot be unwrapped"""


# ---------------------------------------------------------------------------
# Session level
# ---------------------------------------------------------------------------

class InvalidCredentials(VaultError):
    """Wrong password or tampered key envelope.

    Both causes are reported with this single class on purpose.
    """


class UnknownAccount(VaultError):
    """Raised when no account exists for the given email"""


class EmailAlreadyRegistered(VaultError):
    """Raised when registration is rejected because the email is taken"""


class Undecryptable(VaultError):
    """Raised when a stored item fails authentication or schema validation."""

    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message)
        self.item_id = item_id


class NetworkFailure(VaultError):
    """Storage collaborator unreachable or answered with an unexpected status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class SessionStateError(VaultError):
    """Raised when an operation is not valid in the current session state"""


class ItemNotFound(VaultError):
    """Raised when an item id is not part of the unlocked vault"""


class PermanentDeleteRefused(VaultError):
    """Raised when permanent deletion is attempted without its safeguards"""
