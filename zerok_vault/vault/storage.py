"""
Storage collaborator client.

The server is an opaque store: it keeps the credential record (salt,
auth key, wrapped vault key) and a list of ``(id, encrypted_data, iv)``
records per user. Every binary field is lowercase hex on the wire.

``StorageBackend`` describes the calls ``VaultSession`` makes, at the byte
level. ``HttpStorage`` implements it over aiohttp.

Security Note:
    Never log auth keys, tokens, or ciphertext. Only log paths, statuses,
    emails and item ids.
"""
import asyncio
import logging
from urllib.parse import quote
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import aiohttp
import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError, field_validator

from ..exceptions import (
    EmailAlreadyRegistered,
    InvalidCredentials,
    NetworkFailure,
    UnknownAccount,
)
from .config import VaultConfig
from .crypto import from_hex, to_hex, SALT_SIZE

logger = logging.getLogger("zerok.storage")


# ---------------------------------------------------------------------------
# Wire records
# ---------------------------------------------------------------------------

class StoredItem(BaseModel):
    """One encrypted vault record as listed by ``GET /vault``."""

    id: str
    encrypted_data: str
    iv: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Server ids are opaque; accept numeric ids as text."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class _SaltResponse(BaseModel):
    kdf_salt: str


class _LoginResponse(BaseModel):
    token: str
    encrypted_vault_key: str
    vault_key_iv: str


class _IdResponse(BaseModel):
    id: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


_ITEM_LIST = TypeAdapter(list[StoredItem])


@dataclass(frozen=True)
class LoginGrant:
    """Successful ``/login`` answer, hex already decoded."""

    token: str = field(repr=False)
    wrapped_vault_key: bytes = field(repr=False)
    wrap_iv: bytes = field(repr=False)


class StorageBackend(Protocol):
    """Calls made by ``VaultSession`` against the storage collaborator."""

    async def register(
        self,
        email: str,
        auth_key: bytes,
        kdf_salt: bytes,
        wrapped_vault_key: bytes,
        wrap_iv: bytes,
    ) -> Optional[str]:
        ...

    async def get_salt(self, email: str) -> bytes:
        ...

    async def login(self, email: str, auth_key: bytes) -> LoginGrant:
        ...

    async def list_items(self, token: str) -> list[StoredItem]:
        ...

    async def add_item(self, token: str, ciphertext: bytes, nonce: bytes) -> str:
        ...

    async def replace_item(
        self, token: str, item_id: str, ciphertext: bytes, nonce: bytes
    ) -> None:
        ...

    async def delete_item(self, token: str, item_id: str) -> None:
        ...


# ---------------------------------------------------------------------------
# HTTP implementation
# ---------------------------------------------------------------------------

class HttpStorage:
    """aiohttp client for the vault storage API.

    Usage::

        async with HttpStorage(VaultConfig.from_env()) as storage:
            session = VaultSession(storage)
            await session.login(email, password)

    An externally created ``aiohttp.ClientSession`` may be passed in; it is
    then left open on ``close()``.
    """

    def __init__(
        self,
        config: Optional[VaultConfig] = None,
        client: Optional[aiohttp.ClientSession] = None,
    ):
        self._config = config or VaultConfig.from_env()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "HttpStorage":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> None:
        """Create the underlying client session if none was supplied."""
        if self._client is None:
            self._client = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
                connector=aiohttp.TCPConnector(ssl=self._config.verify_ssl),
            )
            self._owns_client = True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        token: Optional[str] = None,
    ) -> tuple[int, bytes]:
        """Send one request and return (status, raw body).

        Raises:
            NetworkFailure: On connection errors and timeouts.
        """
        if self._client is None:
            await self.open()
        headers = {}
        data = None
        if body is not None:
            data = orjson.dumps(body)
            headers["Content-Type"] = "application/json"
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self._config.api_url}{path}"
        try:
            async with self._client.request(
                method, url, data=data, headers=headers,
            ) as response:
                payload = await response.read()
                status = response.status
        except asyncio.TimeoutError as err:
            logger.error("Storage request timed out: %s %s", method, path)
            raise NetworkFailure(f"{method} {path} timed out") from err
        except aiohttp.ClientError as err:
            logger.error("Storage request failed: %s %s: %s", method, path, err)
            raise NetworkFailure(f"{method} {path} failed: {err}") from err
        logger.debug("Storage %s %s -> %d", method, path, status)
        return status, payload

    @staticmethod
    def _check(status: int, method: str, path: str) -> None:
        if not 200 <= status < 300:
            logger.error("Storage %s %s answered HTTP %d", method, path, status)
            raise NetworkFailure(
                f"{method} {path} answered HTTP {status}", status=status,
            )

    @staticmethod
    def _parse(model: Any, payload: bytes, path: str) -> Any:
        try:
            data = orjson.loads(payload) if payload else None
            if isinstance(model, TypeAdapter):
                return model.validate_python(data)
            return model.model_validate(data)
        except (orjson.JSONDecodeError, ValidationError) as err:
            raise NetworkFailure(f"malformed response from {path}") from err

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def register(
        self,
        email: str,
        auth_key: bytes,
        kdf_salt: bytes,
        wrapped_vault_key: bytes,
        wrap_iv: bytes,
    ) -> Optional[str]:
        status, payload = await self._request("POST", "/register", {
            "email": email,
            "auth_key": to_hex(auth_key),
            "kdf_salt": to_hex(kdf_salt),
            "encrypted_vault_key": to_hex(wrapped_vault_key),
            "vault_key_iv": to_hex(wrap_iv),
        })
        # 400 is a rejected request body, not a taken email.
        if 400 < status < 500:
            raise EmailAlreadyRegistered(f"{email} is already registered")
        self._check(status, "POST", "/register")
        # Some servers answer with a message instead of the new id.
        try:
            data = orjson.loads(payload) if payload else None
        except orjson.JSONDecodeError:
            return None
        if not isinstance(data, dict) or data.get("id") is None:
            return None
        return str(data["id"])

    async def get_salt(self, email: str) -> bytes:
        status, payload = await self._request(
            "POST", "/get-salt", {"email": email},
        )
        if 400 <= status < 500:
            raise UnknownAccount(f"no account for {email}")
        self._check(status, "POST", "/get-salt")
        salt = self._parse(_SaltResponse, payload, "/get-salt").kdf_salt
        try:
            return from_hex(salt, SALT_SIZE)
        except ValueError as err:
            raise NetworkFailure("malformed kdf_salt from /get-salt") from err

    async def login(self, email: str, auth_key: bytes) -> LoginGrant:
        status, payload = await self._request("POST", "/login", {
            "email": email,
            "auth_key": to_hex(auth_key),
        })
        if 400 <= status < 500:
            raise InvalidCredentials("invalid email or password")
        self._check(status, "POST", "/login")
        grant = self._parse(_LoginResponse, payload, "/login")
        try:
            return LoginGrant(
                token=grant.token,
                wrapped_vault_key=from_hex(grant.encrypted_vault_key),
                wrap_iv=from_hex(grant.vault_key_iv),
            )
        except ValueError as err:
            raise NetworkFailure("malformed key envelope from /login") from err

    # ------------------------------------------------------------------
    # Vault records
    # ------------------------------------------------------------------

    async def list_items(self, token: str) -> list[StoredItem]:
        status, payload = await self._request("GET", "/vault", token=token)
        self._check(status, "GET", "/vault")
        # The reference server answers ``null`` for an empty vault.
        if payload.strip() in (b"", b"null"):
            return []
        return self._parse(_ITEM_LIST, payload, "/vault")

    async def add_item(self, token: str, ciphertext: bytes, nonce: bytes) -> str:
        status, payload = await self._request("POST", "/vault", {
            "encrypted_data": to_hex(ciphertext),
            "iv": to_hex(nonce),
        }, token=token)
        self._check(status, "POST", "/vault")
        item_id = self._parse(_IdResponse, payload, "/vault").id
        if not item_id:
            raise NetworkFailure("POST /vault returned no item id")
        return item_id

    async def replace_item(
        self, token: str, item_id: str, ciphertext: bytes, nonce: bytes
    ) -> None:
        path = f"/vault/{quote(item_id, safe='')}"
        status, _ = await self._request("PUT", path, {
            "encrypted_data": to_hex(ciphertext),
            "iv": to_hex(nonce),
        }, token=token)
        self._check(status, "PUT", path)

    async def delete_item(self, token: str, item_id: str) -> None:
        path = f"/vault/{quote(item_id, safe='')}"
        status, _ = await self._request("DELETE", path, token=token)
        self._check(status, "DELETE", path)
