"""
Vault Configuration — Storage endpoint and client settings.

Reads settings from environment variables:
    ZEROK_API_URL = <base URL of the storage API, e.g. http://localhost:3000/api/v1>
    ZEROK_REQUEST_TIMEOUT = <seconds>
    ZEROK_VERIFY_SSL = <true|false>

Key derivation parameters are protocol constants (see ``crypto.py``) and
are intentionally not configurable.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("zerok.vault")

DEFAULT_API_URL = "http://localhost:3000/api/v1"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


class VaultConfig(BaseModel):
    """Validated client configuration."""

    api_url: str = Field(default=DEFAULT_API_URL)
    request_timeout: float = Field(default=30.0, gt=0)
    verify_ssl: bool = Field(default=True)

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"api_url must be an http(s) URL: {v}")
        return v.rstrip("/")

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        config = cls(
            api_url=os.environ.get("ZEROK_API_URL", DEFAULT_API_URL),
            request_timeout=float(os.environ.get("ZEROK_REQUEST_TIMEOUT", "30")),
            verify_ssl=_env_bool("ZEROK_VERIFY_SSL", True),
        )
        logger.debug("Vault config loaded: api_url=%s", config.api_url)
        return config
