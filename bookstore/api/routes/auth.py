"""
Authentication API Routes for the bookstore inventory.

Handles:
- User registration
- User login (token generation)
- Token verification for clients restoring a saved session
"""

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, status
from loguru import logger

from bookstore.api.dependencies import (
    Settings,
    get_access_gate,
    get_app_settings,
    get_credential,
    get_user_repository,
)
from bookstore.api.schemas import (
    CredentialsRequest,
    ErrorResponse,
    TokenResponse,
    UserEnvelope,
    UserResponse,
)
from bookstore.exceptions import ForbiddenError, UnauthorizedError
from bookstore.security import (
    AccessGate,
    create_access_token,
    get_password_hash,
    verify_password,
)
from bookstore.storage.user_repository import UserRepository

router = APIRouter(tags=["auth"])


@router.post(
    "/register",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse, "description": "Registration disabled"},
        409: {"model": ErrorResponse, "description": "Username taken"},
    },
)
def register(
    body: CredentialsRequest,
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_app_settings),
):
    """Register a new user."""
    if not settings.allow_registration:
        raise ForbiddenError("Registration is disabled")

    username = body.username
    user = users.create(username, get_password_hash(body.password))
    logger.info(f"Registered user {username}")

    return UserEnvelope(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse, "description": "Bad credentials"}},
)
def login(
    body: CredentialsRequest,
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_app_settings),
):
    """
    Login endpoint.
    Returns a bearer token if the credentials are valid.
    """
    username = body.username
    user = users.get_by_username(username)

    if not user or not user.is_active or not verify_password(body.password, user.hashed_password):
        logger.warning(f"Failed login for {username}")
        raise UnauthorizedError("Invalid username or password")

    access_token = create_access_token(
        data={"sub": user.username},
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )

    return TokenResponse(
        access_token=access_token,
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/verify",
    response_model=UserEnvelope,
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid token"}},
)
def verify(
    credential: Optional[str] = Depends(get_credential),
    gate: AccessGate = Depends(get_access_gate),
    users: UserRepository = Depends(get_user_repository),
):
    """Check a saved token and return its user."""
    verdict = gate.verify(credential)
    if not verdict.allowed:
        raise UnauthorizedError(verdict.reason or "Access denied")

    user = users.get_by_username(verdict.subject)
    if user is None:
        raise UnauthorizedError("User no longer exists or is disabled")

    return UserEnvelope(user=UserResponse.model_validate(user))
