"""Tests for VaultConfig."""
import pytest
from pydantic import ValidationError

from zerok_vault.vault.config import DEFAULT_API_URL, VaultConfig


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("ZEROK_API_URL", "ZEROK_REQUEST_TIMEOUT", "ZEROK_VERIFY_SSL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestVaultConfig:

    def test_defaults(self, clean_env):
        config = VaultConfig.from_env()
        assert config.api_url == DEFAULT_API_URL
        assert config.request_timeout == 30.0
        assert config.verify_ssl is True

    def test_from_env(self, clean_env):
        clean_env.setenv("ZEROK_API_URL", "https://vault.example/api/v1/")
        clean_env.setenv("ZEROK_REQUEST_TIMEOUT", "5")
        clean_env.setenv("ZEROK_VERIFY_SSL", "false")
        config = VaultConfig.from_env()
        assert config.api_url == "https://vault.example/api/v1"
        assert config.request_timeout == 5.0
        assert config.verify_ssl is False

    def test_rejects_non_http_url(self):
        with pytest.raises(ValidationError, match="http"):
            VaultConfig(api_url="ftp://vault.example")

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            VaultConfig(request_timeout=0)

    def test_rejects_bad_boolean(self, clean_env):
        clean_env.setenv("ZEROK_VERIFY_SSL", "maybe")
        with pytest.raises(ValueError, match="ZEROK_VERIFY_SSL"):
            VaultConfig.from_env()
