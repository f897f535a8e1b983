"""
Password Hashing
================

Secure password hashing using bcrypt.

Only the seeding script hashes passwords here; login belongs to the
external auth service.

Version: 0.1.0
"""

from passlib.context import CryptContext

# Configure bcrypt with default rounds
_pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=12,
)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Bcrypt hash of the password
    """
    return _pwd_context.hash(password)
