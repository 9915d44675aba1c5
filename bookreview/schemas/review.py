"""
Review Pydantic Schemas

Schemas:
- ReviewCreate: Create a new review for a book
- ReviewUpdate: Update an existing review
- ReviewResponse: Review with its author embedded
- ReviewListResponse: Paginated list of reviews

Business Rules:
- Rating must be 1-5
- Content must be 10-1000 characters after trimming
- One review per user per book (enforced by the database)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from bookreview.schemas.user import ReviewAuthor

RATING_FIELD_KWARGS = {
    "ge": 1,
    "le": 5,
    "description": "Rating from 1 to 5 stars",
}
CONTENT_FIELD_KWARGS = {
    "min_length": 10,
    "max_length": 1000,
    "description": "Review text (10-1000 characters)",
}


class ReviewCreate(BaseModel):
    """
    Schema for creating a new review.

    Example request body:
    {
        "book_id": 42,
        "rating": 5,
        "content": "One of the best books I've ever read."
    }
    """

    book_id: int = Field(..., ge=1, description="ID of the book being reviewed")
    rating: int = Field(..., examples=[4, 5], **RATING_FIELD_KWARGS)
    content: str = Field(
        ...,
        examples=["This book changed my perspective on..."],
        **CONTENT_FIELD_KWARGS,
    )

    # Stripping runs before the length check, so padding cannot satisfy min_length
    model_config = ConfigDict(str_strip_whitespace=True)


class ReviewUpdate(BaseModel):
    """
    Schema for updating an existing review.

    Both fields are optional; omitted fields keep their current value.
    """

    rating: int | None = Field(default=None, **RATING_FIELD_KWARGS)
    content: str | None = Field(default=None, **CONTENT_FIELD_KWARGS)

    model_config = ConfigDict(str_strip_whitespace=True)


class ReviewResponse(BaseModel):
    """
    Schema for review responses.

    Includes the review data, timestamps and the author's public identity.
    """

    id: int = Field(..., description="Unique review identifier")
    book_id: int = Field(..., description="ID of the reviewed book")
    user_id: int = Field(..., description="ID of the user who wrote the review")
    rating: int = Field(..., description="Rating from 1 to 5 stars")
    content: str = Field(..., description="Review text")
    created_at: datetime = Field(..., description="When the review was created")
    updated_at: datetime = Field(..., description="When the review was last updated")

    user: ReviewAuthor = Field(..., description="User who wrote the review")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 42,
                "user_id": 7,
                "rating": 5,
                "content": "This book completely changed my perspective on...",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "user": {"id": 7, "username": "booklover"},
            }
        },
    )


class ReviewListResponse(BaseModel):
    """Paginated list of reviews."""

    items: list[ReviewResponse] = Field(..., description="List of reviews for this page")
    total: int = Field(..., ge=0, description="Total number of reviews")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")
