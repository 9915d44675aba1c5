"""
Book Pydantic Schemas

Request/response shapes for books. The rating summary (rating,
review_count) appears only on responses; clients cannot write it.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookBase(BaseModel):
    """
    Base schema with shared book fields.

    Text fields are stripped of surrounding whitespace before the length
    constraints are checked.
    """

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["Dune", "Pride and Prejudice"],
    )

    author: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author name",
        examples=["Frank Herbert", "Jane Austen"],
    )

    description: str = Field(
        ...,
        min_length=1,
        max_length=5000,
        description="Book description or summary",
        examples=["A dystopian novel set in a totalitarian society..."],
    )

    genre: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Genre label",
        examples=["Fiction", "Science Fiction", "Mystery"],
    )

    published_date: date | None = Field(
        default=None,
        description="Date of publication",
        examples=["1965-08-01"],
    )

    cover_image: str | None = Field(
        default=None,
        max_length=1000,
        description="URL of the cover image",
        examples=["https://covers.example.com/dune.jpg"],
    )

    model_config = ConfigDict(str_strip_whitespace=True)


class BookCreate(BookBase):
    """
    Schema for creating a new book.

    Example request body:
    {
        "title": "Dune",
        "author": "Frank Herbert",
        "description": "Politics and ecology on a desert planet.",
        "genre": "Science Fiction",
        "published_date": "1965-08-01"
    }
    """

    @field_validator("genre")
    @classmethod
    def genre_must_not_be_all(cls, v: str) -> str:
        """'All' is the listing's no-filter value, not a real genre."""
        if v.lower() == "all":
            raise ValueError("'All' is reserved and cannot be used as a genre")
        return v


class BookUpdate(BaseModel):
    """
    Schema for updating an existing book.

    All fields are optional for PATCH-style updates. Fields that are
    present must still satisfy the create rules.
    """

    title: str | None = Field(default=None, min_length=1, max_length=500)
    author: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1, max_length=5000)
    genre: str | None = Field(default=None, min_length=1, max_length=100)
    published_date: date | None = None
    cover_image: str | None = Field(default=None, max_length=1000)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("title", "author", "description", "genre")
    @classmethod
    def required_fields_not_null(cls, v: str | None) -> str | None:
        """Required columns may be omitted from an update but not nulled."""
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class BookResponse(BookBase):
    """
    Schema for book responses.

    Includes the database id, timestamps, and the derived rating summary.
    """

    id: int = Field(..., description="Unique identifier")

    rating: float = Field(
        default=0.0,
        ge=0,
        le=5,
        description="Mean review rating (0 when there are no reviews)",
    )
    review_count: int = Field(
        default=0,
        ge=0,
        description="Number of reviews for this book",
    )

    created_at: datetime = Field(..., description="When the book was created")
    updated_at: datetime = Field(..., description="When the book was last updated")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Dune",
                "author": "Frank Herbert",
                "description": "Politics and ecology on a desert planet.",
                "genre": "Science Fiction",
                "published_date": "1965-08-01",
                "cover_image": None,
                "rating": 4.25,
                "review_count": 4,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class BookListResponse(BaseModel):
    """
    Schema for paginated book list responses.

    - total: Total number of books matching the query
    - page: Current page number
    - per_page: Number of items per page
    - pages: Total number of pages
    """

    items: list[BookResponse] = Field(..., description="List of books for this page")
    total: int = Field(..., ge=0, description="Total number of books")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "total": 100,
                "page": 1,
                "per_page": 10,
                "pages": 10,
            }
        },
    )


class BookRatingStats(BaseModel):
    """Aggregated rating statistics for a book."""

    book_id: int = Field(..., description="Book ID")
    rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Mean rating (0 means no reviews)"
    )
    review_count: int = Field(..., ge=0, description="Total number of reviews")
    rating_distribution: dict[int, int] = Field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
        description="Count of each rating (1-5)"
    )
