"""
Security Service

Password hashing and session token operations.

Security Features:
==================
1. Password hashing with bcrypt (passlib), cost factor from settings (10)
2. HS256 JWT session tokens carrying the user id and username
3. Tokens expire after settings.access_token_expire_hours (24 by default)

Usage:
    from bookreview.services.security import hash_password, verify_password

    hashed = hash_password("SecurePass123")
    is_valid = verify_password("SecurePass123", hashed)
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from bookreview.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# -------------------------------------------------------------------------
# Password Hashing Configuration
# -------------------------------------------------------------------------
# bcrypt embeds a random salt and the cost factor in every hash, so
# verification works even if bcrypt_rounds changes later.
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Example:
        >>> hashed = hash_password("SecurePass123")
        >>> hashed.startswith("$2b$10$")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a stored bcrypt hash.

    Uses constant-time comparison to prevent timing attacks.
    """
    return pwd_context.verify(plain_password, hashed_password)


# -------------------------------------------------------------------------
# Session Token Configuration
# -------------------------------------------------------------------------
ALGORITHM = "HS256"


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed session token.

    Args:
        data: Claims to encode, normally {"sub": str(user.id), "username": ...}
        expires_delta: Optional custom lifetime

    Returns:
        Encoded JWT string (header.payload.signature)
    """
    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = timedelta(hours=settings.access_token_expire_hours)

    to_encode.update({"exp": datetime.now(UTC) + expires_delta})

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=ALGORITHM,
    )


def create_user_token(user) -> str:
    """Create a session token for a User record."""
    return create_access_token({"sub": str(user.id), "username": user.username})


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a session token.

    Returns:
        Decoded claims if the signature and expiry are valid, None otherwise
    """
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None
