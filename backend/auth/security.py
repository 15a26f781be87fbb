"""
Security utilities for password hashing and bearer token management.

This module provides cryptographic functions for:
- Password hashing using Argon2id (memory-hard, GPU-resistant)
- Access token creation and verification (signed JWT with a unique JTI)
"""

import logging
import secrets
import os
from datetime import timedelta
from typing import Optional, Dict, Any, Tuple

from jose import JWTError, jwt
from passlib.context import CryptContext

from time_utils import utc_now

logger = logging.getLogger(__name__)


def is_production_like() -> bool:
    """
    Check if the current environment is production-like (production or staging).

    Returns:
        True if ENVIRONMENT is "production" or "staging", False otherwise
    """
    env = os.environ.get("ENVIRONMENT", "development").lower()
    return env in ("production", "staging")


# Password hashing configuration using Argon2id
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

# JWT configuration
# Load SECRET_KEY from environment variable (REQUIRED outside development)
SECRET_KEY = os.environ.get("JWT_SECRET_KEY")
if not SECRET_KEY:
    if is_production_like():
        raise ValueError(
            "JWT_SECRET_KEY environment variable is required in production. "
            "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
        )
    else:
        SECRET_KEY = "dev-insecure-key-" + secrets.token_urlsafe(32)
        logger.warning(
            "⚠️  JWT_SECRET_KEY not set! Using temporary development key. "
            "Issued tokens will not survive a restart."
        )

ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

SUPPORTED_ALGORITHMS = ["HS256", "HS384", "HS512"]
if ALGORITHM not in SUPPORTED_ALGORITHMS:
    logger.warning(
        f"⚠️  Unsupported JWT_ALGORITHM={ALGORITHM}. Using HS256. "
        f"Supported: {', '.join(SUPPORTED_ALGORITHMS)}"
    )
    ALGORITHM = "HS256"

try:
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
    if ACCESS_TOKEN_EXPIRE_MINUTES < 1 or ACCESS_TOKEN_EXPIRE_MINUTES > 43200:  # 1 min to 30 days
        logger.warning(
            f"⚠️  ACCESS_TOKEN_EXPIRE_MINUTES={ACCESS_TOKEN_EXPIRE_MINUTES} is outside safe range (1-43200). "
            "Using default of 1440 minutes."
        )
        ACCESS_TOKEN_EXPIRE_MINUTES = 1440
except ValueError:
    logger.warning(
        "⚠️  Invalid ACCESS_TOKEN_EXPIRE_MINUTES value in environment. Using default of 1440 minutes."
    )
    ACCESS_TOKEN_EXPIRE_MINUTES = 1440


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Example:
        >>> hashed = hash_password("my_secure_password")
        >>> verify_password("my_secure_password", hashed)
        True
    """
    logger.debug("Hashing password")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    logger.debug("Verifying password")
    is_valid = pwd_context.verify(plain_password, hashed_password)
    logger.debug(f"Password verification result: {is_valid}")
    return is_valid


def create_access_token(
    user_id: int, expires_delta: Optional[timedelta] = None
) -> Tuple[str, Dict[str, Any]]:
    """
    Create a signed access token bound to one user.

    Each token gets its own JTI so it can be revoked individually while the
    user's other tokens stay valid.

    Args:
        user_id: ID of the user the token authenticates
        expires_delta: Optional custom lifetime

    Returns:
        (encoded token, claims) - claims carry "jti" and "exp" for persistence

    Example:
        >>> token, claims = create_access_token(1)
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    expire = utc_now() + expires_delta
    claims = {
        "sub": str(user_id),
        "jti": secrets.token_urlsafe(32),
        "type": "access",
        "exp": expire,
    }

    # jwt.encode rewrites "exp" in place; keep the datetime for the token record
    to_encode = claims.copy()
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    logger.debug(f"Access token created for user {user_id}, expires at: {expire}")
    return encoded_jwt, claims


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode an access token.

    Returns:
        Decoded token payload if the signature and expiry check out, None otherwise
    """
    logger.debug("Verifying JWT token")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info(f"JWT verification failed: {str(e)}")
        return None

    if payload.get("type") != "access" or not payload.get("jti"):
        logger.info("JWT verification failed: not an access token")
        return None

    return payload
