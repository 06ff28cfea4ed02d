"""
Vault Items — Item models and the item codec.

Items are a tagged union on ``type``: ``LoginItem`` or ``CardItem``.
The full record (type tag and flags included) is serialized to canonical
JSON and sealed under the vault master key on every write; there is no
partial-field update at the cryptographic layer.

The server-assigned ``id`` is never part of the sealed payload. It travels
next to the ciphertext so entries can be addressed before decryption.

Security Note:
    Never log plaintext item fields. Only log item ids.
"""
import time
from typing import Annotated, Literal, Optional, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .crypto import seal, unseal, from_hex
from ..exceptions import AuthenticationFailed, Undecryptable
from .storage import StoredItem


def _now_ms() -> int:
    return int(time.time() * 1000)


class _ItemBase(BaseModel):
    """Fields shared by every item variant.

    Items are immutable; edits go through ``model_copy(update=...)`` and
    ``VaultSession.update_item``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: Optional[str] = Field(default=None, exclude=True)
    title: str
    is_favorite: bool = Field(default=False, alias="isFavorite")
    is_deleted: bool = Field(default=False, alias="isDeleted")
    created_at: int = Field(default_factory=_now_ms, alias="createdAt")


class LoginItem(_ItemBase):
    """Website or application credentials."""

    type: Literal["login"] = "login"
    website: Optional[str] = None
    username: str
    password: str


class CardItem(_ItemBase):
    """Payment card."""

    type: Literal["card"] = "card"
    card_holder: str = Field(alias="cardHolder")
    card_number: str = Field(alias="cardNumber")
    card_brand: str = Field(alias="cardBrand")
    expiry_month: str = Field(alias="expiryMonth")
    expiry_year: str = Field(alias="expiryYear")
    cvv: str


VaultItem = Annotated[Union[LoginItem, CardItem], Field(discriminator="type")]

_ITEM_ADAPTER: TypeAdapter = TypeAdapter(VaultItem)


class CorruptedItem(BaseModel):
    """A stored entry that could not be decoded.

    Kept in the vault listing so broken entries stay visible instead of
    disappearing.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    reason: str


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def serialize_item(item: Union[LoginItem, CardItem]) -> bytes:
    """Canonical byte form: sorted-key JSON with camelCase field names."""
    return orjson.dumps(
        item.model_dump(by_alias=True),
        option=orjson.OPT_SORT_KEYS,
    )


def _normalize_payload(data: dict) -> dict:
    # Records written by older clients may omit the tag or the flags.
    data.pop("id", None)
    if not data.get("type"):
        data["type"] = "login"
    for flag in ("isFavorite", "isDeleted"):
        if data.get(flag) is None:
            data.pop(flag, None)
    return data


def deserialize_item(payload: bytes, item_id: Optional[str] = None):
    """Parse a decrypted payload into a ``LoginItem`` or ``CardItem``.

    Raises:
        Undecryptable: If the payload does not match the item schema.
    """
    try:
        data = orjson.loads(payload)
    except orjson.JSONDecodeError as err:
        raise Undecryptable("item payload is not valid JSON", item_id) from err
    if not isinstance(data, dict):
        raise Undecryptable("item payload is not an object", item_id)
    try:
        item = _ITEM_ADAPTER.validate_python(_normalize_payload(data))
    except ValidationError as err:
        raise Undecryptable(
            f"item payload does not match schema ({err.error_count()} error(s))",
            item_id,
        ) from err
    return item.model_copy(update={"id": item_id})


# ---------------------------------------------------------------------------
# Item codec
# ---------------------------------------------------------------------------

def encode_item(vault_key: bytes, item: Union[LoginItem, CardItem]) -> tuple[bytes, bytes]:
    """Serialize and seal the full item record with a fresh nonce.

    Returns:
        Tuple of (ciphertext, nonce).
    """
    return seal(vault_key, serialize_item(item))


def decode_item(
    vault_key: bytes,
    ciphertext: bytes,
    nonce: bytes,
    item_id: Optional[str] = None,
):
    """Open and parse a sealed item.

    Args:
        vault_key: Unwrapped 32-byte vault master key.
        ciphertext: Sealed item payload.
        nonce: Nonce stored next to the payload.
        item_id: Server id, attached to the returned item.

    Returns:
        ``LoginItem`` or ``CardItem``.

    Raises:
        Undecryptable: On authentication failure or schema mismatch. A
            partially populated item is never returned.
    """
    try:
        payload = unseal(vault_key, ciphertext, nonce)
    except AuthenticationFailed as err:
        raise Undecryptable(f"item failed authentication: {err}", item_id) from err
    return deserialize_item(payload, item_id)


def decode_stored(vault_key: bytes, stored: StoredItem):
    """Decode a wire record, returning a ``CorruptedItem`` instead of raising."""
    try:
        ciphertext = from_hex(stored.encrypted_data)
        nonce = from_hex(stored.iv)
    except (TypeError, ValueError) as err:
        return CorruptedItem(id=stored.id, reason=f"malformed hex field: {err}")
    try:
        return decode_item(vault_key, ciphertext, nonce, stored.id)
    except Undecryptable as err:
        return CorruptedItem(id=stored.id, reason=str(err))
