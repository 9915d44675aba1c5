"""
Books Router

CRUD endpoints for books plus the rating statistics view.

Endpoints:
- GET /books - Paginated list with search and genre filters
- GET /books/{book_id} - Single book
- POST /books - Create a book (authenticated)
- PUT /books/{book_id} - Update a book (authenticated)
- DELETE /books/{book_id} - Delete a book and its reviews (authenticated)
- GET /books/{book_id}/rating - Rating statistics

Books have no owner, so any authenticated user may change them.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import func, or_, select

from bookreview.config import get_settings
from bookreview.dependencies import BookFilters, CurrentUser, DbSession, Pagination
from bookreview.models import Book
from bookreview.schemas import (
    BookCreate,
    BookListResponse,
    BookRatingStats,
    BookResponse,
    BookUpdate,
)
from bookreview.services.rate_limiter import limiter
from bookreview.services.ratings import get_rating_distribution

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================
def get_book_or_404(db: DbSession, book_id: int) -> Book:
    """
    Get a book by ID or raise 404.

    Raises:
        HTTPException: 404 if book not found
    """
    book = db.get(Book, book_id)

    if book is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )

    return book


def apply_book_filters(stmt, filters: BookFilters):
    """
    Apply listing filters to a book query.

    - search: case-insensitive substring of title or author
    - genre: exact genre match
    """
    if filters.search:
        term = filters.search.lower()
        stmt = stmt.where(
            or_(
                func.lower(Book.title).contains(term, autoescape=True),
                func.lower(Book.author).contains(term, autoescape=True),
            )
        )

    if filters.genre:
        stmt = stmt.where(Book.genre == filters.genre)

    return stmt


# =============================================================================
# CRUD Endpoints
# =============================================================================
@router.get(
    "",
    response_model=BookListResponse,
    summary="List books",
    description="Get a paginated list of books, newest first, optionally filtered by search text and genre.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    filters: BookFilters,
) -> BookListResponse:
    """
    List books with pagination and optional filtering.

    Examples:
        GET /api/books?page=2
        GET /api/books?search=orwell
        GET /api/books?genre=Mystery
    """
    base_stmt = apply_book_filters(select(Book), filters)

    count_stmt = select(func.count()).select_from(base_stmt.subquery())
    total = db.execute(count_stmt).scalar() or 0

    stmt = (
        base_stmt
        .order_by(Book.created_at.desc(), Book.id.desc())
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    books = db.execute(stmt).scalars().all()

    return BookListResponse(
        items=[BookResponse.model_validate(book) for book in books],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages_for(total),
    )


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get a book by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    book_id: int,
    db: DbSession,
) -> BookResponse:
    """Get a single book, including its current rating summary."""
    book = get_book_or_404(db, book_id)
    return BookResponse.model_validate(book)


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new book",
    description="Create a new book. Requires authentication.",
)
@limiter.limit(settings.rate_limit_default)
def create_book(
    request: Request,
    book_data: BookCreate,
    db: DbSession,
    current_user: CurrentUser,
) -> BookResponse:
    """
    Create a new book.

    The rating summary starts empty (rating 0, no reviews).
    """
    book = Book(**book_data.model_dump())

    db.add(book)
    db.commit()
    db.refresh(book)

    logger.info(f"Book {book.id} created by user {current_user.id}: '{book.title}'")

    return BookResponse.model_validate(book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Update a book's descriptive fields. Requires authentication.",
)
@limiter.limit(settings.rate_limit_default)
def update_book(
    request: Request,
    book_id: int,
    book_data: BookUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> BookResponse:
    """
    Update an existing book.

    Only provided fields are updated. The rating summary is not writable.
    """
    book = get_book_or_404(db, book_id)

    update_data = book_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(book, field, value)

    db.commit()
    db.refresh(book)

    return BookResponse.model_validate(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Delete a book and all of its reviews. Requires authentication.",
)
@limiter.limit(settings.rate_limit_default)
def delete_book(
    request: Request,
    book_id: int,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """Delete a book; its reviews are removed with it."""
    book = get_book_or_404(db, book_id)
    db.delete(book)
    db.commit()

    logger.info(f"Book {book_id} deleted by user {current_user.id}")


@router.get(
    "/{book_id}/rating",
    response_model=BookRatingStats,
    summary="Get book rating statistics",
    description="Mean rating, review count and per-star distribution for a book.",
)
@limiter.limit(settings.rate_limit_default)
def get_book_rating_stats(
    request: Request,
    book_id: int,
    db: DbSession,
) -> BookRatingStats:
    """Rating statistics, read from the maintained summary plus a per-star count."""
    book = get_book_or_404(db, book_id)

    return BookRatingStats(
        book_id=book.id,
        rating=book.rating,
        review_count=book.review_count,
        rating_distribution=get_rating_distribution(db, book.id),
    )
