"""
VaultSession — Client-side session holding the unwrapped vault master key.

Provides the public API of the vault client:
- ``register(email, password)`` — create an account and its key envelope
- ``login(email, password)`` — unwrap the vault key and load all items
- ``create_item`` / ``update_item`` — seal and store a full item record
- ``toggle_favorite`` / ``soft_delete`` / ``restore`` — flag flips via update
- ``permanent_delete(item_id, confirm=True)`` — remove a trashed item
- ``lock()`` / ``unlock(password)`` / ``logout()`` — session lifecycle

States: ``UNAUTHENTICATED → AUTHENTICATING → UNLOCKED → LOCKED``;
``logout()`` returns to ``UNAUTHENTICATED`` from any state.

Security Note:
    The vault master key exists in process memory only while the session
    is UNLOCKED and is set only once a login fully succeeded. Never log
    passwords, keys, tokens or item contents; only emails, item ids and
    counts.
"""
import logging
from enum import Enum
from typing import Optional, Union

from .crypto import derive_keys, generate_salt
from .envelope import generate_vault_key, unwrap_vault_key, wrap_vault_key
from .items import CardItem, CorruptedItem, LoginItem, decode_stored, encode_item
from .storage import StorageBackend, StoredItem
from .views import ItemCategory, VaultView, filter_entries
from ..exceptions import (
    DecryptionFailed,
    InvalidCredentials,
    ItemNotFound,
    PermanentDeleteRefused,
    SessionStateError,
    Undecryptable,
)

logger = logging.getLogger("zerok.vault")

Item = Union[LoginItem, CardItem]


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    UNLOCKED = "unlocked"
    LOCKED = "locked"


class VaultSession:
    """Zero-knowledge vault session bound to one storage backend.

    The storage collaborator only ever receives the auth key, the wrapped
    vault key and sealed item records. Decrypted items live in an in-memory
    collection keyed by server id, in storage order.
    """

    def __init__(self, storage: StorageBackend):
        self._storage = storage
        self._state = SessionState.UNAUTHENTICATED
        self._email: Optional[str] = None
        self._token: Optional[str] = None
        self._salt: Optional[bytes] = None
        self._envelope: Optional[tuple[bytes, bytes]] = None
        self._vault_key: Optional[bytes] = None
        self._entries: dict[str, Union[Item, CorruptedItem]] = {}

    async def __aenter__(self) -> "VaultSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.logout()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def email(self) -> Optional[str]:
        return self._email

    @property
    def is_unlocked(self) -> bool:
        return self._state is SessionState.UNLOCKED

    @property
    def entries(self) -> list[Union[Item, CorruptedItem]]:
        """Every stored entry, valid or corrupted, in storage order."""
        return list(self._entries.values())

    @property
    def items(self) -> list[Item]:
        return [e for e in self._entries.values() if not isinstance(e, CorruptedItem)]

    @property
    def corrupted(self) -> list[CorruptedItem]:
        return [e for e in self._entries.values() if isinstance(e, CorruptedItem)]

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _require_state(self, *states: SessionState) -> None:
        if self._state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(
                f"operation requires state {allowed}, session is {self._state.value}"
            )

    def _require_unlocked(self) -> bytes:
        self._require_state(SessionState.UNLOCKED)
        return self._vault_key

    @staticmethod
    def _decode_all(
        vault_key: bytes, stored: list[StoredItem], email: str,
    ) -> dict[str, Union[Item, CorruptedItem]]:
        """Decode a listing into entries keyed by server id.

        A repeated id keeps its first decodable record; the repeat is logged.
        """
        entries: dict[str, Union[Item, CorruptedItem]] = {}
        for record in stored:
            entry = decode_stored(vault_key, record)
            previous = entries.get(record.id)
            if previous is not None:
                logger.warning(
                    "Vault listing for %s repeats item id %s", email, record.id,
                )
                if not isinstance(previous, CorruptedItem):
                    continue
            entries[record.id] = entry
        broken = sum(isinstance(e, CorruptedItem) for e in entries.values())
        if broken:
            logger.warning(
                "Vault for %s has %d undecryptable item(s)", email, broken,
            )
        logger.info("Vault loaded for %s: %d item(s)", email, len(entries))
        return entries

    def _lookup(self, item_id: str) -> Union[Item, CorruptedItem]:
        try:
            return self._entries[item_id]
        except KeyError:
            raise ItemNotFound(f"no vault item with id {item_id}") from None

    def _get_item(self, item_id: str) -> Item:
        entry = self._lookup(item_id)
        if isinstance(entry, CorruptedItem):
            raise Undecryptable(f"item {item_id} cannot be decrypted", item_id)
        return entry

    # ------------------------------------------------------------------
    # Account lifecycle
    # ------------------------------------------------------------------

    async def register(self, email: str, password: str) -> Optional[str]:
        """Create an account: new salt, new vault key, wrapped under the password.

        Returns:
            Account id when the server reports one.

        Raises:
            EmailAlreadyRegistered: If the email is taken.
            NetworkFailure: If the storage collaborator fails.
        """
        self._require_state(SessionState.UNAUTHENTICATED)
        salt = generate_salt()
        keys = derive_keys(password, salt)
        vault_key = generate_vault_key()
        wrapped_vault_key, wrap_iv = wrap_vault_key(keys.wrapping_key, vault_key)
        account_id = await self._storage.register(
            email, keys.auth_key, salt, wrapped_vault_key, wrap_iv,
        )
        logger.info("Registered vault account for %s", email)
        return account_id

    async def login(self, email: str, password: str) -> list[Union[Item, CorruptedItem]]:
        """Authenticate, unwrap the vault master key and load every item.

        A failed or cancelled login leaves the session UNAUTHENTICATED with
        no key material set.

        Returns:
            All stored entries, corrupted ones included.

        Raises:
            UnknownAccount: If no account exists for the email.
            InvalidCredentials: On a wrong password or a tampered envelope.
            NetworkFailure: If the storage collaborator fails.
        """
        self._require_state(SessionState.UNAUTHENTICATED)
        self._state = SessionState.AUTHENTICATING
        try:
            salt = await self._storage.get_salt(email)
            keys = derive_keys(password, salt)
            grant = await self._storage.login(email, keys.auth_key)
            try:
                vault_key = unwrap_vault_key(
                    keys.wrapping_key, grant.wrapped_vault_key, grant.wrap_iv,
                )
            except DecryptionFailed as err:
                logger.warning("Vault key unwrap failed for %s", email)
                raise InvalidCredentials("invalid email or password") from err
            stored = await self._storage.list_items(grant.token)
            entries = self._decode_all(vault_key, stored, email)
            self._email = email
            self._token = grant.token
            self._salt = salt
            self._envelope = (grant.wrapped_vault_key, grant.wrap_iv)
            self._entries = entries
            self._vault_key = vault_key
            self._state = SessionState.UNLOCKED
        finally:
            if self._vault_key is None:
                self._state = SessionState.UNAUTHENTICATED
        logger.info("Vault unlocked for %s", email)
        return self.entries

    def lock(self) -> None:
        """Drop the vault key and decrypted items, keeping the session token."""
        self._require_state(SessionState.UNLOCKED)
        self._vault_key = None
        self._entries = {}
        self._state = SessionState.LOCKED
        logger.info("Vault locked for %s", self._email)

    async def unlock(self, password: str) -> list[Union[Item, CorruptedItem]]:
        """Re-derive the wrapping key locally and reload the vault.

        Raises:
            InvalidCredentials: On a wrong password; the session stays LOCKED.
            NetworkFailure: If reloading the item list fails.
        """
        self._require_state(SessionState.LOCKED)
        keys = derive_keys(password, self._salt)
        wrapped_vault_key, wrap_iv = self._envelope
        try:
            vault_key = unwrap_vault_key(keys.wrapping_key, wrapped_vault_key, wrap_iv)
        except DecryptionFailed as err:
            logger.warning("Unlock refused for %s", self._email)
            raise InvalidCredentials("invalid password") from err
        stored = await self._storage.list_items(self._token)
        self._entries = self._decode_all(vault_key, stored, self._email)
        self._vault_key = vault_key
        self._state = SessionState.UNLOCKED
        logger.info("Vault unlocked for %s", self._email)
        return self.entries

    def logout(self) -> None:
        """Discard the vault key, the token and all decrypted items."""
        email = self._email
        self._vault_key = None
        self._token = None
        self._salt = None
        self._envelope = None
        self._email = None
        self._entries = {}
        self._state = SessionState.UNAUTHENTICATED
        if email is not None:
            logger.info("Logged out %s", email)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def get(self, item_id: str) -> Union[Item, CorruptedItem]:
        self._require_unlocked()
        return self._lookup(item_id)

    def view(
        self,
        view: VaultView = VaultView.ALL,
        category: ItemCategory = ItemCategory.ALL,
        query: Optional[str] = None,
    ) -> list[Union[Item, CorruptedItem]]:
        """Entries shown for a view, category and search query."""
        self._require_unlocked()
        return filter_entries(self._entries.values(), view, category, query)

    async def create_item(self, item: Item) -> Item:
        """Seal a new item, store it and add it with its server id.

        Returns:
            The stored item carrying the server-assigned ``id``.
        """
        vault_key = self._require_unlocked()
        ciphertext, nonce = encode_item(vault_key, item)
        item_id = await self._storage.add_item(self._token, ciphertext, nonce)
        created = item.model_copy(update={"id": item_id})
        self._entries[item_id] = created
        logger.debug("Vault item created: id=%s", item_id)
        return created

    async def update_item(self, item_id: str, item: Item) -> Item:
        """Re-seal the full record under a fresh nonce and replace it.

        The in-memory collection changes only after the server accepted
        the replacement.
        """
        vault_key = self._require_unlocked()
        self._lookup(item_id)
        updated = item.model_copy(update={"id": item_id})
        ciphertext, nonce = encode_item(vault_key, updated)
        await self._storage.replace_item(self._token, item_id, ciphertext, nonce)
        self._entries[item_id] = updated
        logger.debug("Vault item updated: id=%s", item_id)
        return updated

    async def toggle_favorite(self, item_id: str) -> Item:
        self._require_unlocked()
        item = self._get_item(item_id)
        return await self.update_item(
            item_id, item.model_copy(update={"is_favorite": not item.is_favorite}),
        )

    async def soft_delete(self, item_id: str) -> Item:
        """Move an item to the trash."""
        self._require_unlocked()
        item = self._get_item(item_id)
        return await self.update_item(
            item_id, item.model_copy(update={"is_deleted": True}),
        )

    async def restore(self, item_id: str) -> Item:
        """Bring an item back from the trash."""
        self._require_unlocked()
        item = self._get_item(item_id)
        return await self.update_item(
            item_id, item.model_copy(update={"is_deleted": False}),
        )

    async def permanent_delete(self, item_id: str, confirm: bool = False) -> None:
        """Remove a trashed item from storage and memory. Irreversible.

        Only items already in the trash can be deleted, and only with
        ``confirm=True``. Corrupted entries, whose flags cannot be read,
        only need the confirmation.

        Raises:
            PermanentDeleteRefused: If a safeguard is not satisfied.
        """
        self._require_unlocked()
        entry = self._lookup(item_id)
        if not isinstance(entry, CorruptedItem) and not entry.is_deleted:
            raise PermanentDeleteRefused(
                f"item {item_id} must be moved to the trash first"
            )
        if not confirm:
            raise PermanentDeleteRefused(
                f"permanent deletion of item {item_id} requires confirm=True"
            )
        await self._storage.delete_item(self._token, item_id)
        del self._entries[item_id]
        logger.info("Vault item permanently deleted: id=%s", item_id)
