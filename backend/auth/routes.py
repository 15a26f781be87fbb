"""
Authentication API endpoints.

This module provides REST API endpoints for:
- User registration (issues a first token)
- Login/logout (logout revokes only the presented token)
- Current user lookup
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import schemas
from database import get_db
from models import AccessToken, User
from auth.security import create_access_token, hash_password, verify_password
from auth.dependencies import get_current_access_token, get_current_user
from presentation import api_responses, json_payload, render, request_body
from services.results import Success, ValidationFailed, storage_fault
from services.validation import validate_payload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

EMAIL_TAKEN = "The email has already been taken."


def issue_token(user: User, db: Session) -> str:
    """
    Issue a new bearer token for a user and record it for revocation.

    The caller commits the session.
    """
    token, claims = create_access_token(user.id)
    db.add(
        AccessToken(
            user_id=user.id,
            token_jti=claims["jti"],
            expires_at=claims["exp"],
        )
    )
    return token


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    openapi_extra=request_body(schemas.RegisterRequest),
    responses=api_responses(
        schemas.Envelope[schemas.RegisterData],
        status.HTTP_201_CREATED,
        not_found=False,
        authenticated=False,
    ),
)
def register(payload: Any = Depends(json_payload), db: Session = Depends(get_db)):
    """
    Register a new user account and log it in.

    Returns:
        201 with {user, token, token_type}, 422 on invalid data or a taken email
    """
    data, errors = validate_payload(schemas.RegisterRequest, payload)

    # Uniqueness is reported together with the other field errors
    email = (payload or {}).get("email") if isinstance(payload, dict) else None
    if isinstance(email, str) and "email" not in errors:
        lookup = data.email if data is not None else email
        if db.query(User).filter(User.email == lookup).first():
            logger.info(f"Registration failed: email already exists: {lookup}")
            errors["email"] = [EMAIL_TAKEN]

    if errors:
        return render(ValidationFailed(errors))

    try:
        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
        )
        db.add(user)
        db.flush()
        token = issue_token(user, db)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        logger.info(f"Registration failed on unique constraint: {data.email}")
        return render(ValidationFailed({"email": [EMAIL_TAKEN]}))
    except SQLAlchemyError:
        return render(storage_fault(db, f"register {data.email}"))

    logger.info(f"User registered successfully: {user.email} (ID: {user.id})")
    return render(
        Success(
            schemas.RegisterData(user=schemas.User.model_validate(user), token=token),
            "User registered successfully",
            created=True,
        )
    )


@router.post(
    "/login",
    openapi_extra=request_body(schemas.LoginRequest),
    responses=api_responses(schemas.Envelope[schemas.LoginData], not_found=False),
)
def login(payload: Any = Depends(json_payload), db: Session = Depends(get_db)):
    """
    Login with email and password.

    Raises:
        HTTPException: 401 if credentials are invalid; no token is issued then
    """
    data, errors = validate_payload(schemas.LoginRequest, payload)
    if errors:
        return render(ValidationFailed(errors))

    logger.info(f"Login attempt for email: {data.email}")

    user = db.query(User).filter(User.email == data.email).first()
    if user is None or not verify_password(data.password, user.password_hash):
        logger.info(f"Login failed for email: {data.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    try:
        token = issue_token(user, db)
        db.commit()
    except SQLAlchemyError:
        return render(storage_fault(db, f"issue token for user {user.id}"))

    logger.info(f"User logged in successfully: {user.email} (ID: {user.id})")
    return render(
        Success(
            schemas.LoginData(user=schemas.LoginUser.model_validate(user), token=token),
            "Login successful",
        )
    )


@router.post("/logout", responses=api_responses(not_found=False, validation=False))
def logout(
    access_token: AccessToken = Depends(get_current_access_token),
    db: Session = Depends(get_db),
):
    """Revoke the token used for this request; the user's other tokens stay valid."""
    user_id = access_token.user_id
    try:
        db.delete(access_token)
        db.commit()
    except SQLAlchemyError:
        return render(storage_fault(db, f"revoke token for user {user_id}"))

    logger.info(f"User logged out: {user_id}")
    return render(Success(None, "Logout successful"))


@router.get(
    "/me",
    responses=api_responses(schemas.Envelope[schemas.User], not_found=False, validation=False),
)
def me(current_user: User = Depends(get_current_user)):
    logger.debug(f"Fetching user info for: {current_user.email}")
    return render(Success(current_user), schema=schemas.User)
