"""
Authentication utilities: Password hashing and JWT token management
"""

import jwt
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from typing import Optional

from config.settings import settings

# Password hashing context
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(days=7)
TOKEN_MAX_AGE_SECONDS = int(TOKEN_LIFETIME.total_seconds())


def hash_password(password: str) -> str:
    """Hash a password using argon2"""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(password, password_hash)


def _require_secret() -> str:
    if not settings.jwt_secret_key:
        raise ValueError("JWT_SECRET_KEY is not set. Cannot sign or verify tokens.")
    return settings.jwt_secret_key


def create_jwt(user_id: str, role: str = "owner") -> str:
    """Create a JWT token for a user"""
    secret = _require_secret()
    payload = {
        "sub": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + TOKEN_LIFETIME,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_jwt(token: str) -> Optional[dict]:
    """Decode a JWT token. Returns None if invalid or expired."""
    secret = _require_secret()
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def create_expired_jwt(user_id: str, expired_seconds_ago: int = 1) -> str:
    """
    Create an expired JWT token for testing purposes.

    Raises:
        ValueError: If JWT_SECRET_KEY is not set
    """
    secret = _require_secret()
    payload = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc) - timedelta(seconds=expired_seconds_ago),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)
