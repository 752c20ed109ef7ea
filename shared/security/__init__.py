"""
Security module: Password hashing.
"""

from shared.security.password import hash_password, verify_password, needs_rehash

__all__ = [
    "hash_password",
    "verify_password",
    "needs_rehash",
]
