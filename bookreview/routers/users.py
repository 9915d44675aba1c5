"""
Users Router

User profile endpoints.

Endpoints:
- GET /users/me - Current user's profile (same as /auth/me)
- PUT /users/me - Update current user's profile
- GET /users/{user_id} - Public user profile

A user's reviews are listed with GET /reviews?user_id={user_id}.
"""

from fastapi import APIRouter, HTTPException, Request, status

from bookreview.config import get_settings
from bookreview.dependencies import CurrentUser, DbSession
from bookreview.models.user import User
from bookreview.schemas.user import UserPublicResponse, UserResponse, UserUpdate
from bookreview.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "User not found"},
    },
)


def get_user_or_404(db: DbSession, user_id: int) -> User:
    """Get a user by ID or raise 404."""
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


# =============================================================================
# Current User Endpoints (/users/me)
# =============================================================================
# These must be registered before /users/{user_id} so "me" is not parsed as an id.


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user profile",
)
@limiter.limit(settings.rate_limit_default)
def get_current_user_profile(
    request: Request,
    current_user: CurrentUser,
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update current user profile",
    description="Update your profile picture and bio. Omitted fields are unchanged.",
)
@limiter.limit(settings.rate_limit_default)
def update_current_user_profile(
    request: Request,
    user_data: UserUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> UserResponse:
    """Update the current user's profile fields."""
    update_data = user_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)

    return UserResponse.model_validate(current_user)


# =============================================================================
# Public Profile
# =============================================================================


@router.get(
    "/{user_id}",
    response_model=UserPublicResponse,
    summary="Get public user profile",
    description="Public profile of any user. Email is not included.",
)
@limiter.limit(settings.rate_limit_default)
def get_user_profile(
    request: Request,
    user_id: int,
    db: DbSession,
) -> UserPublicResponse:
    user = get_user_or_404(db, user_id)
    return UserPublicResponse.model_validate(user)
