"""
Book Model

The central model of the Book Review API.

Derived Fields
==============
rating and review_count summarize the book's reviews and are never
written by API clients. They are maintained by
bookreview.services.ratings in the same transaction as each review write.
rating_total (sum of all review ratings) is kept alongside them so the
mean can be updated with a single atomic UPDATE instead of re-reading
every review.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreview.database import Base

if TYPE_CHECKING:
    from bookreview.models.review import Review


class Book(Base):
    """
    Book model representing books that can be reviewed.

    Table: books

    Fields:
    - title, author, description, genre: Required descriptive fields
    - published_date: When the book was published (optional)
    - cover_image: URL of the cover image (optional)
    - rating: Mean review rating, 0 when there are no reviews
    - review_count: Number of reviews
    - rating_total: Sum of review ratings (internal)

    Relationships:
    - reviews: One-to-Many, deleted together with the book

    Example:
        book = Book(
            title="Dune",
            author="Frank Herbert",
            description="Politics and ecology on a desert planet.",
            genre="Science Fiction",
            published_date=date(1965, 8, 1),
        )
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Descriptive Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    # The author is a free-text name; there is no separate authors table
    author: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Author name"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Book description or summary"
    )

    genre: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
        comment="Genre label, e.g. Fiction or Mystery"
    )

    published_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Date of publication"
    )

    cover_image: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
        comment="URL of the cover image"
    )

    # -------------------------------------------------------------------------
    # Rating Aggregation (derived)
    # -------------------------------------------------------------------------
    rating: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        server_default="0",
        nullable=False,
        comment="Mean review rating, 0 when there are no reviews"
    )

    review_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        comment="Number of reviews for this book"
    )

    rating_total: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        comment="Sum of all review ratings"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', author='{self.author}')"
