"""
Vault Key Envelope — generation and wrapping of the vault master key.

The vault master key encrypts every item. It is generated once at
registration and stored server-side only as AES-GCM ciphertext under the
password-derived wrapping key.
"""
import os

from .crypto import KEY_LENGTH, seal, unseal
from ..exceptions import AuthenticationFailed, DecryptionFailed


def generate_vault_key() -> bytes:
    """Draw a fresh random 256-bit vault master key."""
    return os.urandom(KEY_LENGTH)


def wrap_vault_key(wrapping_key: bytes, vault_key: bytes) -> tuple[bytes, bytes]:
    """Seal the vault master key under the wrapping key.

    Returns:
        Tuple of (wrapped_vault_key, wrap_iv).
    """
    if len(vault_key) != KEY_LENGTH:
        raise ValueError(
            f"vault key must be exactly {KEY_LENGTH} bytes, got {len(vault_key)}"
        )
    return seal(wrapping_key, vault_key)


def unwrap_vault_key(
    wrapping_key: bytes,
    wrapped_vault_key: bytes,
    wrap_iv: bytes,
) -> bytes:
    """Recover the vault master key.

    Raises:
        DecryptionFailed: If the wrapping key does not match the one used at
            registration (wrong password) or the stored envelope was altered.
    """
    try:
        vault_key = unseal(wrapping_key, wrapped_vault_key, wrap_iv)
    except AuthenticationFailed as err:
        raise DecryptionFailed("vault key envelope did not authenticate") from err
    if len(vault_key) != KEY_LENGTH:
        raise DecryptionFailed(
            f"unwrapped vault key has {len(vault_key)} bytes, "
            f"expected {KEY_LENGTH}"
        )
    return vault_key
