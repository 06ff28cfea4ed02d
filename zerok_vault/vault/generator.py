"""Random password generator for new login items."""
import secrets
import string

PASSWORD_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits + "!@#$%^&*"
DEFAULT_PASSWORD_LENGTH = 16


def generate_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """Return a password of ``length`` characters drawn with ``secrets``."""
    if length < 1:
        raise ValueError(f"password length must be positive, got {length}")
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
