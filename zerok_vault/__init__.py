"""ZeroK Vault.

Client-held password vault: passwords, card numbers and the keys that
protect them are encrypted before they reach the storage server.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    AuthenticationFailed,
    DecryptionFailed,
    InvalidCredentials,
    UnknownAccount,
    EmailAlreadyRegistered,
    Undecryptable,
    NetworkFailure,
    SessionStateError,
    ItemNotFound,
    PermanentDeleteRefused,
)
from .vault import (
    VaultConfig,
    HttpStorage,
    VaultSession,
    SessionState,
    LoginItem,
    CardItem,
    CorruptedItem,
    VaultView,
    ItemCategory,
    generate_password,
)

__all__ = [
    "__version__",
    "VaultError",
    "AuthenticationFailed",
    "DecryptionFailed",
    "InvalidCredentials",
    "UnknownAccount",
    "EmailAlreadyRegistered",
    "Undecryptable",
    "NetworkFailure",
    "SessionStateError",
    "ItemNotFound",
    "PermanentDeleteRefused",
    "VaultConfig",
    "HttpStorage",
    "VaultSession",
    "SessionState",
    "LoginItem",
    "CardItem",
    "CorruptedItem",
    "VaultView",
    "ItemCategory",
    "generate_password",
]
