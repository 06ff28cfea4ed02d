"""
Shared pytest fixtures for the vault test suite.

``FakeStorage`` stands in for the storage server: it implements the
``StorageBackend`` protocol and keeps every binary field as lowercase hex,
exactly as the server persists it, so tests can inspect and tamper with
stored records.
"""
import hmac
import itertools
import secrets

import pytest

from zerok_vault.exceptions import (
    EmailAlreadyRegistered,
    InvalidCredentials,
    NetworkFailure,
    UnknownAccount,
)
from zerok_vault.vault.storage import LoginGrant, StoredItem

PASSWORD = "Passw0rd!"
EMAIL = "u@test"


class FakeStorage:
    """In-memory storage collaborator."""

    def __init__(self):
        self.accounts: dict[str, dict] = {}
        self.vaults: dict[str, dict[str, dict]] = {}
        self.tokens: dict[str, str] = {}
        self.calls: list[str] = []
        self._ids = itertools.count(1)

    # --- helpers used by tests ---

    def records(self, email: str = EMAIL) -> dict[str, dict]:
        return self.vaults[email]

    def _vault(self, token: str) -> dict[str, dict]:
        email = self.tokens.get(token)
        if email is None:
            raise NetworkFailure("unauthorized", status=401)
        return self.vaults[email]

    # --- StorageBackend ---

    async def register(self, email, auth_key, kdf_salt, wrapped_vault_key, wrap_iv):
        self.calls.append("register")
        if email in self.accounts:
            raise EmailAlreadyRegistered(email)
        self.accounts[email] = {
            "auth_key": auth_key.hex(),
            "kdf_salt": kdf_salt.hex(),
            "encrypted_vault_key": wrapped_vault_key.hex(),
            "vault_key_iv": wrap_iv.hex(),
        }
        self.vaults[email] = {}
        return f"user-{next(self._ids)}"

    async def get_salt(self, email):
        self.calls.append("get_salt")
        if email not in self.accounts:
            raise UnknownAccount(email)
        return bytes.fromhex(self.accounts[email]["kdf_salt"])

    async def login(self, email, auth_key):
        self.calls.append("login")
        account = self.accounts.get(email)
        if account is None or not hmac.compare_digest(account["auth_key"], auth_key.hex()):
            raise InvalidCredentials("invalid email or password")
        token = secrets.token_hex(16)
        self.tokens[token] = email
        return LoginGrant(
            token=token,
            wrapped_vault_key=bytes.fromhex(account["encrypted_vault_key"]),
            wrap_iv=bytes.fromhex(account["vault_key_iv"]),
        )

    async def list_items(self, token):
        self.calls.append("list_items")
        return [StoredItem(**record) for record in self._vault(token).values()]

    async def add_item(self, token, ciphertext, nonce):
        self.calls.append("add_item")
        vault = self._vault(token)
        item_id = f"item-{next(self._ids)}"
        vault[item_id] = {"id": item_id, "encrypted_data": ciphertext.hex(), "iv": nonce.hex()}
        return item_id

    async def replace_item(self, token, item_id, ciphertext, nonce):
        self.calls.append("replace_item")
        vault = self._vault(token)
        if item_id not in vault:
            raise NetworkFailure("not found", status=404)
        vault[item_id] = {"id": item_id, "encrypted_data": ciphertext.hex(), "iv": nonce.hex()}

    async def delete_item(self, token, item_id):
        self.calls.append("delete_item")
        vault = self._vault(token)
        if item_id not in vault:
            raise NetworkFailure("not found", status=404)
        del vault[item_id]


@pytest.fixture
def storage():
    """Create a fresh FakeStorage instance."""
    return FakeStorage()


@pytest.fixture
def vault_key():
    """A random 32-byte vault master key."""
    return secrets.token_bytes(32)
