"""Vault core — Zero-knowledge key handling and encrypted item storage.

Security Note (Threat Model):
    The server stores the KDF salt, the auth key, the wrapped vault key and
    sealed item records. The password, the wrapping key and the vault master
    key never leave the client. While a session is unlocked the vault master
    key and decrypted items live in process memory; a memory dump of the
    client process exposes them. This is an accepted limitation.
"""

from .config import VaultConfig
from .crypto import DerivedKeys, derive_keys, generate_salt, seal, unseal
from .envelope import generate_vault_key, unwrap_vault_key, wrap_vault_key
from .items import (
    CardItem,
    CorruptedItem,
    LoginItem,
    VaultItem,
    decode_item,
    decode_stored,
    encode_item,
)
from .storage import HttpStorage, LoginGrant, StorageBackend, StoredItem
from .views import ItemCategory, VaultView, filter_entries
from .generator import generate_password
from .session import SessionState, VaultSession

__all__ = [
    "VaultConfig",
    "DerivedKeys",
    "derive_keys",
    "generate_salt",
    "seal",
    "unseal",
    "generate_vault_key",
    "wrap_vault_key",
    "unwrap_vault_key",
    "CardItem",
    "CorruptedItem",
    "LoginItem",
    "VaultItem",
    "encode_item",
    "decode_item",
    "decode_stored",
    "HttpStorage",
    "LoginGrant",
    "StorageBackend",
    "StoredItem",
    "ItemCategory",
    "VaultView",
    "filter_entries",
    "generate_password",
    "SessionState",
    "VaultSession",
]
