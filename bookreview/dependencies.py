"""
FastAPI Dependencies Module

Reusable components injected into route handlers with Depends():
- Database sessions (per-request)
- Pagination parameters
- Book list filters
- Authentication (current user from the bearer token)
"""

import math
from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from bookreview.config import get_settings
from bookreview.database import get_db
from bookreview.models.user import User
from bookreview.services.security import decode_token

settings = get_settings()

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    - page: Which page to return (1-indexed)
    - per_page: How many items per page
    - skip: Calculated offset for database query
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
            examples=[1, 2, 3],
        ),
        per_page: int = Query(
            default=10,
            ge=1,
            le=100,
            description="Number of items per page (max 100)",
            examples=[10, 25, 50],
        ),
    ) -> None:
        self.page = page
        self.per_page = per_page

    @property
    def skip(self) -> int:
        """Number of records to skip: page 1 → 0, page 2 → per_page, ..."""
        return (self.page - 1) * self.per_page

    def pages_for(self, total: int) -> int:
        """Total number of pages needed for `total` records."""
        return math.ceil(total / self.per_page) if total > 0 else 0


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Book List Filters
# =============================================================================
class BookSearchParams:
    """
    Search and filter parameters for the book listing.

    Usage:
        GET /api/books?search=herbert&genre=Science%20Fiction
    """

    def __init__(
        self,
        search: str | None = Query(
            default=None,
            max_length=100,
            description="Case-insensitive match on title or author",
            examples=["dune", "austen"],
        ),
        genre: str | None = Query(
            default=None,
            max_length=100,
            description="Exact genre; 'All' or empty disables the filter",
            examples=["Fiction", "Mystery"],
        ),
    ) -> None:
        self.search = search.strip() if search and search.strip() else None
        self.genre = genre.strip() if genre and genre.strip() and genre.strip() != "All" else None


BookFilters = Annotated[BookSearchParams, Depends()]


# =============================================================================
# Bearer Token Authentication
# =============================================================================
# OAuth2PasswordBearer extracts the token from "Authorization: Bearer <token>"
# and answers 401 when the header is missing or uses another scheme.

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_prefix}/auth/login",
    auto_error=True,
)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the authenticated user from the bearer token.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or its user
            no longer exists
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    if payload is None:
        raise credentials_exception

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise credentials_exception

    stmt = select(User).where(User.id == int(user_id))
    user = db.execute(stmt).scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
