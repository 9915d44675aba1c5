"""
Authentication Router

Handles user authentication endpoints:
- Registration (username/email/password → token)
- Login (email/password → token)
- Get current user (from token)

Security:
=========
- Passwords are hashed with bcrypt before storage
- Plain text passwords are never logged or stored
- Tokens are signed JWTs valid for 24 hours by default
- Login attempts are limited to 5 per 15 minutes per client
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from bookreview.config import get_settings
from bookreview.dependencies import CurrentUser, DbSession
from bookreview.models.user import User
from bookreview.schemas.user import (
    AuthResponse,
    LoginRequest,
    UserCreate,
    UserResponse,
)
from bookreview.services.rate_limiter import limiter
from bookreview.services.security import (
    create_user_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
    },
)

DUPLICATE_USER_MESSAGE = "User with this email or username already exists"


def build_auth_response(user: User) -> AuthResponse:
    """Issue a session token for user and wrap it with the user's profile."""
    return AuthResponse(
        token=create_user_token(user),
        token_type="bearer",
        expires_in=settings.access_token_expire_seconds,
        user=UserResponse.model_validate(user),
    )


# -------------------------------------------------------------------------
# Registration Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new account and receive a session token.

    **Requirements:**
    - Username: 3-30 characters
    - Email: valid address, not already registered
    - Password: at least 8 characters with letters and numbers
    """,
)
@limiter.limit(settings.rate_limit_default)
def register(
    request: Request,
    user_data: UserCreate,
    db: DbSession,
) -> AuthResponse:
    """
    Register a new user with email and password.

    1. Validates the payload (handled by Pydantic)
    2. Rejects a duplicate email or username with 400
    3. Hashes the password with bcrypt
    4. Creates the user and returns a token
    """
    stmt = select(User.id).where(
        or_(User.email == user_data.email, User.username == user_data.username)
    )
    if db.execute(stmt).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=DUPLICATE_USER_MESSAGE,
        )

    user = User(
        username=user_data.username,
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
    )

    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        # A concurrent registration won the unique index
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=DUPLICATE_USER_MESSAGE,
        )
    db.refresh(user)

    logger.info(f"New user registered: {user.email}")

    return build_auth_response(user)


# -------------------------------------------------------------------------
# Login Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login with email and password",
    description="""
    Authenticate with email and password to receive a session token.

    **Usage:**
    Include the token in the Authorization header:
    ```
    Authorization: Bearer <token>
    ```

    Limited to 5 attempts per 15 minutes per client.
    """,
)
@limiter.limit(settings.rate_limit_login)
def login(
    request: Request,
    credentials: LoginRequest,
    db: DbSession,
) -> AuthResponse:
    """Authenticate user and return a session token."""
    stmt = select(User).where(User.email == credentials.email)
    user = db.execute(stmt).scalar_one_or_none()

    if user is None or not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"Login failed for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"User logged in: {user.email}")

    return build_auth_response(user)


# -------------------------------------------------------------------------
# Get Current User Endpoint
# -------------------------------------------------------------------------
@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get the profile of the user the bearer token belongs to.",
)
@limiter.limit(settings.rate_limit_default)
def get_me(
    request: Request,
    current_user: CurrentUser,
) -> UserResponse:
    return UserResponse.model_validate(current_user)
