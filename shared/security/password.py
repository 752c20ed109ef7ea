"""
Password hashing utilities using bcrypt.

Employee passwords are stored as bcrypt hashes only; plaintext
comparison is never attempted.
"""

import bcrypt

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(password: str, rounds: int | None = None) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash.
        rounds: Cost factor. Defaults to settings.bcrypt_rounds.

    Returns:
        Hashed password string (includes salt and algorithm info).

    Example:
        hashed = hash_password("mypassword123")
        # Returns something like: $2b$12$...
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verify a password against its hash.

    Args:
        plain_password: Plain text password to verify.
        hashed_password: Previously hashed password to check against.

    Returns:
        True if password matches, False otherwise (including malformed hashes).
    """
    if not hashed_password or not hashed_password.startswith(_BCRYPT_PREFIXES):
        logger.warning("Stored password is not a bcrypt hash; rejecting login")
        return False

    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored bcrypt hash is malformed; rejecting login")
        return False


def needs_rehash(hashed_password: str, rounds: int | None = None) -> bool:
    """
    Check if a password hash should be regenerated.

    True for non-bcrypt hashes and for hashes made with a different cost
    factor than the configured one.
    """
    if not hashed_password.startswith(_BCRYPT_PREFIXES):
        return True

    # $2b$12$... -> cost is the second field
    try:
        cost = int(hashed_password.split("$")[2])
    except (IndexError, ValueError):
        return True
    return cost != (rounds or settings.bcrypt_rounds)
