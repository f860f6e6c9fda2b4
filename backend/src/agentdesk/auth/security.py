"""Password hashing and access-token primitives.

Passwords are hashed with passlib (pbkdf2_sha256). Access tokens are opaque
strings of the form ``<token id>|<secret>``; only the sha256 digest of the
secret is stored.
"""

import hashlib
import hmac
import secrets
from typing import Optional

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

TOKEN_BYTES = 40


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored hash. Missing hashes never match."""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def generate_token_secret() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def split_token(token: str) -> Optional[tuple[int, str]]:
    """Split ``<id>|<secret>`` into its parts, or None if malformed."""
    token_id, sep, secret = token.partition("|")
    if not sep or not secret or not token_id.isdigit():
        return None
    return int(token_id), secret


def token_matches(secret: str, token_hash: str) -> bool:
    return hmac.compare_digest(hash_token(secret), token_hash)
