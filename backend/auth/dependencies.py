"""
FastAPI dependencies for authentication.

This module resolves the bearer token of a request to the principal making it:
- The token signature and expiry are checked first
- The token's JTI must still be recorded (logout deletes the record)
- The owning user must still exist
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database import get_db
from models import AccessToken, User
from auth.security import verify_token
from time_utils import is_expired, utc_now

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str = "Unauthenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AccessToken:
    """
    Resolve the presented bearer token to its stored AccessToken record.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired or revoked

    Example:
        @app.post("/logout")
        async def logout(token: AccessToken = Depends(get_current_access_token)):
            ...
    """
    if not credentials or not credentials.credentials:
        logger.info("No authentication credentials provided")
        raise _unauthenticated()

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise _unauthenticated("Invalid or expired token")

    # Parse user_id safely (malformed tokens should return 401, not 500)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.info(f"Invalid user_id format in token: {payload.get('sub')}")
        raise _unauthenticated("Invalid token format")

    access_token = (
        db.query(AccessToken)
        .filter(
            AccessToken.token_jti == payload["jti"],
            AccessToken.user_id == user_id,
        )
        .first()
    )
    if access_token is None:
        logger.info(f"Token for user {user_id} is revoked or unknown")
        raise _unauthenticated("Invalid or expired token")

    if is_expired(access_token.expires_at):
        logger.info(f"Expired token used: {access_token.id}")
        raise _unauthenticated("Invalid or expired token")

    if access_token.user is None:
        logger.info(f"User not found for token: {access_token.id}")
        raise _unauthenticated()

    access_token.last_used_at = utc_now()
    db.commit()

    logger.debug(f"User authenticated via bearer token: {user_id}")
    return access_token


async def get_current_user(
    access_token: AccessToken = Depends(get_current_access_token),
) -> User:
    """
    Return the principal behind the request's bearer token.

    Route handlers pass `current_user.id` on to the services explicitly.
    """
    return access_token.user
