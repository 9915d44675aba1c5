"""
Pydantic Schemas Package

Request/response validation models, kept separate from the SQLAlchemy
models so the API controls exactly what is accepted and exposed.

Schema Naming Convention:
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses
- XxxListResponse: Paginated list wrapper
"""

from bookreview.schemas.book import (
    BookBase,
    BookCreate,
    BookListResponse,
    BookRatingStats,
    BookResponse,
    BookUpdate,
)
from bookreview.schemas.review import (
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from bookreview.schemas.user import (
    AuthResponse,
    LoginRequest,
    ReviewAuthor,
    UserCreate,
    UserPublicResponse,
    UserResponse,
    UserUpdate,
)

__all__ = [
    # Book schemas
    "BookBase",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookListResponse",
    "BookRatingStats",
    # Review schemas
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewListResponse",
    # User and auth schemas
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserPublicResponse",
    "ReviewAuthor",
    "LoginRequest",
    "AuthResponse",
]
