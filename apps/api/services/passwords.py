"""
Account password hashing using PBKDF2-HMAC-SHA256.
"""

import base64
import hmac
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC


HASH_SCHEME = "pbkdf2_sha256"
ITERATIONS = 390000
SALT_BYTES = 16
KEY_LENGTH = 32


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )


def hash_password(password: str) -> str:
    """
    Hash a password for storage.

    Args:
        password: Plain text password

    Returns:
        ``pbkdf2_sha256$<iterations>$<salt>$<hash>`` with base64 parts
    """
    salt = os.urandom(SALT_BYTES)
    derived = _kdf(salt, ITERATIONS).derive(password.encode())
    return "$".join(
        [
            HASH_SCHEME,
            str(ITERATIONS),
            base64.b64encode(salt).decode(),
            base64.b64encode(derived).decode(),
        ]
    )


def verify_password(password: str, encoded: str) -> bool:
    """Check a plain text password against a stored hash."""
    try:
        scheme, iterations, salt_b64, hash_b64 = encoded.split("$", 3)
        if not hmac.compare_digest(scheme, HASH_SCHEME):
            return False
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(hash_b64)
        _kdf(salt, int(iterations)).verify(password.encode(), expected)
    except (ValueError, InvalidKey):
        return False
    return True
