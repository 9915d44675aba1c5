"""
User Pydantic Schemas

Schemas:
- UserCreate: Registration data (username, email, password)
- LoginRequest: Email/password credentials
- UserUpdate: Profile update fields
- UserResponse: The authenticated user's own data (never the password)
- UserPublicResponse: Profile visible to everyone (no email)
- ReviewAuthor: Minimal author info embedded in reviews
- AuthResponse: Token plus user, returned by register and login
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    """
    Schema for user registration.

    Rules:
    - username: 3-30 characters after trimming
    - email: valid address, stored lowercase
    - password: at least 8 characters with at least one letter and one digit
    """

    username: str = Field(
        ...,
        min_length=3,
        max_length=30,
        description="Unique username (3-30 characters)",
        examples=["booklover", "jane_doe"],
    )

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["jane@example.com"],
    )

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 chars, letters and numbers)",
        examples=["SecurePass123"],
    )

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_must_mix_letters_and_digits(cls, v: str) -> str:
        """Require at least one letter and one digit."""
        if not re.search(r"[A-Za-z]", v) or not re.search(r"\d", v):
            raise ValueError(
                "Password must be at least 8 characters and contain both letters and numbers"
            )
        return v


class LoginRequest(BaseModel):
    """Credentials for POST /auth/login."""

    email: EmailStr = Field(..., description="Registered email address")
    password: str = Field(..., min_length=1, description="Account password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserUpdate(BaseModel):
    """
    Schema for updating the current user's profile.

    All fields are optional for partial updates.
    """

    profile_picture: str | None = Field(
        default=None,
        max_length=1000,
        description="URL to profile picture",
    )

    bio: str | None = Field(
        default=None,
        max_length=500,
        description="User biography",
    )


class UserResponse(BaseModel):
    """
    The authenticated user's own profile.

    SECURITY: Never includes the password hash.
    """

    id: int = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Unique username")
    email: EmailStr = Field(..., description="User's email address")
    profile_picture: str | None = Field(default=None, description="URL to profile picture")
    bio: str | None = Field(default=None, description="User biography")
    created_at: datetime = Field(..., description="When the user registered")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "username": "booklover",
                "email": "jane@example.com",
                "profile_picture": None,
                "bio": "Reads mostly science fiction",
                "created_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class UserPublicResponse(BaseModel):
    """Public user profile (visible to other users, excludes email)."""

    id: int = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Unique username")
    profile_picture: str | None = Field(default=None, description="URL to profile picture")
    bio: str | None = Field(default=None, description="User biography")
    created_at: datetime = Field(..., description="When the user joined")

    model_config = ConfigDict(from_attributes=True)


class ReviewAuthor(BaseModel):
    """Minimal user info embedded in review responses."""

    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """
    Returned by register and login.

    The token goes in the Authorization header of later requests:
        Authorization: Bearer <token>
    """

    token: str = Field(..., description="Signed bearer token")
    token_type: str = Field(default="bearer", description="Always 'bearer'")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse
