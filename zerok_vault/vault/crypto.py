"""
Vault Crypto Core — Password key derivation and authenticated encryption.

- Key derivation: PBKDF2-HMAC-SHA256(password, salt, 100k) → 64 bytes,
  split into ``auth_key`` (first half, sent to the server) and
  ``wrapping_key`` (second half, never leaves the client).
- AEAD: AES-256-GCM with a fresh random 96-bit nonce per ``seal`` call.
  Ciphertext and nonce are returned separately; the server stores them
  in distinct fields.

Security Note:
    Never log passwords, keys, plaintext or ciphertext values.
    The iteration count and salt length are protocol constants: a client
    using other values derives unrelated keys and can never log in.
"""
import os
from dataclasses import dataclass, field
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import AuthenticationFailed

PBKDF2_ITERATIONS = 100_000
SALT_SIZE = 16
KEY_LENGTH = 32  # AES-256
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16


@dataclass(frozen=True)
class DerivedKeys:
    """Output of :func:`derive_keys`. Key material is kept out of ``repr``."""

    auth_key: bytes = field(repr=False)
    wrapping_key: bytes = field(repr=False)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def generate_salt() -> bytes:
    """Return a fresh random 16-byte KDF salt."""
    return os.urandom(SALT_SIZE)


def derive_keys(password: Union[str, bytes], salt: bytes) -> DerivedKeys:
    """Derive the authentication key and the wrapping key from a password.

    Deterministic for a given (password, salt) pair. Nothing is cached;
    the caller owns the returned key material.

    Args:
        password: User password, ``str`` values are UTF-8 encoded.
        salt: 16-byte salt stored on the server with the account.

    Returns:
        DerivedKeys with two independent 32-byte values.

    Raises:
        ValueError: If the salt is not exactly 16 bytes.
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(
            f"KDF salt must be exactly {SALT_SIZE} bytes, got {len(salt)}"
        )
    if isinstance(password, str):
        password = password.encode("utf-8")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH * 2,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    output = kdf.derive(password)
    return DerivedKeys(
        auth_key=output[:KEY_LENGTH],
        wrapping_key=output[KEY_LENGTH:],
    )


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def _cipher(key: bytes) -> AESGCM:
    if len(key) != KEY_LENGTH:
        raise ValueError(
            f"AES-256 key must be exactly {KEY_LENGTH} bytes, got {len(key)}"
        )
    return AESGCM(key)


def seal(key: bytes, plaintext: bytes) -> tuple[bytes, bytes]:
    """Encrypt and authenticate plaintext under key.

    Args:
        key: 32-byte AES key.
        plaintext: Data to encrypt.

    Returns:
        Tuple of (ciphertext_with_tag, nonce).
    """
    cipher = _cipher(key)
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = cipher.encrypt(nonce, plaintext, None)
    return ciphertext, nonce


def unseal(key: bytes, ciphertext: bytes, nonce: bytes) -> bytes:
    """Verify and decrypt a sealed payload.

    Args:
        key: 32-byte AES key.
        ciphertext: Ciphertext with the 16-byte GCM tag appended.
        nonce: 12-byte nonce returned by :func:`seal`.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        AuthenticationFailed: On tag mismatch or malformed nonce/ciphertext.
    """
    cipher = _cipher(key)
    if len(nonce) != NONCE_SIZE:
        raise AuthenticationFailed(
            f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}"
        )
    if len(ciphertext) < TAG_SIZE:
        raise AuthenticationFailed(
            f"ciphertext too short: {len(ciphertext)} bytes "
            f"(minimum {TAG_SIZE})"
        )
    try:
        return cipher.decrypt(nonce, ciphertext, None)
    except InvalidTag as err:
        raise AuthenticationFailed("authentication tag mismatch") from err


# ---------------------------------------------------------------------------
# Wire encoding
# ---------------------------------------------------------------------------

def to_hex(data: bytes) -> str:
    """Lowercase hex, the only encoding used for binary fields on the wire."""
    return data.hex()


def from_hex(value: str, size: int = 0) -> bytes:
    """Decode a hex wire field, optionally enforcing its byte length.

    Raises:
        ValueError: If the value is not hex or has the wrong length.
    """
    data = bytes.fromhex(value)
    if size and len(data) != size:
        raise ValueError(f"expected {size} bytes, got {len(data)}")
    return data
