"""Password hashing and opaque session-token helpers."""


import hashlib
import hmac
import secrets
from functools import lru_cache

from werkzeug.security import check_password_hash, generate_password_hash

from tally.core.config import settings


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=settings.password_hash_method)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash of a random value, verified against when the account does not exist."""
    return hash_password(secrets.token_urlsafe(16))


def generate_temporary_password() -> str:
    """One-time credential shown once to the creating admin, never stored in clear."""
    return secrets.token_urlsafe(12)


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


def token_digest(token: str) -> str:
    """HMAC the cookie token with the session secret; only the digest is persisted."""
    return hmac.new(
        settings.session_secret.encode("utf-8"), token.encode("utf-8"), hashlib.sha256
    ).hexdigest()
