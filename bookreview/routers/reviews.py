"""
Reviews Router

CRUD endpoints for book reviews.

Endpoints:
- GET /reviews - Paginated list, filterable by book_id and user_id
- GET /reviews/{review_id} - A specific review
- POST /reviews - Create a review (authenticated)
- PUT /reviews/{review_id} - Update a review (owner only)
- DELETE /reviews/{review_id} - Delete a review (owner only)

Business Rules:
- One review per user per book
- Reviews owned by someone else answer 404, the same as missing ones
- Every write keeps the book's rating and review_count in step
"""

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from bookreview.config import get_settings
from bookreview.dependencies import CurrentUser, DbSession, Pagination
from bookreview.models import Review
from bookreview.schemas.review import (
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from bookreview.services import reviews as review_service
from bookreview.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
    responses={
        404: {"description": "Review or book not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================
def get_review_or_404(db: DbSession, review_id: int) -> Review:
    """Get a review by ID with its author loaded, or raise 404."""
    review = review_service.load_review(db, review_id)

    if review is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Review not found",
        )
    return review


def list_reviews_page(
    db: DbSession,
    pagination: Pagination,
    *conditions,
) -> ReviewListResponse:
    """Paginated, newest-first review list for the given WHERE conditions."""
    count_stmt = select(func.count(Review.id)).where(*conditions)
    total = db.execute(count_stmt).scalar() or 0

    stmt = (
        select(Review)
        .options(selectinload(Review.user))
        .where(*conditions)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    reviews = db.execute(stmt).scalars().all()

    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages_for(total),
    )


# =============================================================================
# Endpoints
# =============================================================================
@router.get(
    "",
    response_model=ReviewListResponse,
    summary="List reviews",
    description="Get a paginated list of reviews, newest first. Filter by book and/or author.",
)
@limiter.limit(settings.rate_limit_default)
def list_reviews(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    book_id: int | None = Query(default=None, ge=1, description="Only reviews of this book"),
    user_id: int | None = Query(default=None, ge=1, description="Only reviews by this user"),
) -> ReviewListResponse:
    """
    List reviews.

    Examples:
        GET /api/reviews?book_id=42
        GET /api/reviews?user_id=7&page=2
    """
    conditions = []
    if book_id is not None:
        conditions.append(Review.book_id == book_id)
    if user_id is not None:
        conditions.append(Review.user_id == user_id)

    return list_reviews_page(db, pagination, *conditions)


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
    description="Review a book. Requires authentication. One review per book per user.",
)
@limiter.limit(settings.rate_limit_default)
def create_review(
    request: Request,
    review_data: ReviewCreate,
    db: DbSession,
    current_user: CurrentUser,
) -> ReviewResponse:
    """
    Create a new review and update the book's rating summary.

    Raises:
        HTTPException: 404 if the book does not exist
        HTTPException: 400 if the user already reviewed this book
    """
    try:
        review = review_service.create_review(db, current_user, review_data)
    except review_service.BookNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )
    except review_service.ReviewConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return ReviewResponse.model_validate(review)


@router.get(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Get a review by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_review(
    request: Request,
    review_id: int,
    db: DbSession,
) -> ReviewResponse:
    review = get_review_or_404(db, review_id)
    return ReviewResponse.model_validate(review)


@router.put(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Update a review",
    description="Update your own review. The book's rating is adjusted if the rating changes.",
)
@limiter.limit(settings.rate_limit_default)
def update_review(
    request: Request,
    review_id: int,
    review_data: ReviewUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> ReviewResponse:
    """
    Update an existing review.

    Raises:
        HTTPException: 404 if the review does not exist or is not yours
    """
    try:
        review = review_service.update_review(db, review_id, current_user.id, review_data)
    except review_service.ReviewNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Review not found",
        )
    return ReviewResponse.model_validate(review)


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
    description="Delete your own review. The book's rating summary is updated.",
)
@limiter.limit(settings.rate_limit_default)
def delete_review(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """
    Delete a review.

    Deleting a book's last review resets its rating to 0.

    Raises:
        HTTPException: 404 if the review does not exist or is not yours
    """
    try:
        review_service.delete_review(db, review_id, current_user.id)
    except review_service.ReviewNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Review not found",
        )
