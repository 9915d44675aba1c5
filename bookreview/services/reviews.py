"""
Reviews Service

Review writes and the rating aggregation they trigger, as one unit.

Each function writes the review row and adjusts the book's rating
summary in the same transaction, then commits once. If anything fails
the whole transaction is rolled back, so a review never exists without
being counted (or the other way around).

One-review-per-book is checked up front for a friendly error, and is
guaranteed by the uq_review_book_user constraint when two requests race
past that check.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from bookreview.models import Book, Review, User
from bookreview.schemas.review import ReviewCreate, ReviewUpdate
from bookreview.services.ratings import apply_rating_change

logger = logging.getLogger(__name__)

ALREADY_REVIEWED_MESSAGE = "You have already reviewed this book"


class ReviewServiceError(Exception):
    """Base class for review domain errors."""


class BookNotFoundError(ReviewServiceError):
    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with id {book_id} not found")
        self.book_id = book_id


class ReviewConflictError(ReviewServiceError):
    """The user has already reviewed this book."""

    def __init__(self) -> None:
        super().__init__(ALREADY_REVIEWED_MESSAGE)


class ReviewNotFoundError(ReviewServiceError):
    def __init__(self, review_id: int) -> None:
        super().__init__(f"Review with id {review_id} not found")
        self.review_id = review_id


def _summary(db: Session, book_id: int) -> str:
    book = db.get(Book, book_id)
    if book is None:
        return "book gone"
    return f"book rating={book.rating:.2f} count={book.review_count}"


def load_review(db: Session, review_id: int) -> Review | None:
    """Fetch a review with its author loaded."""
    stmt = (
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.id == review_id)
    )
    return db.execute(stmt).scalar_one_or_none()


def has_reviewed(db: Session, book_id: int, user_id: int) -> bool:
    stmt = select(Review.id).where(
        Review.book_id == book_id,
        Review.user_id == user_id,
    )
    return db.execute(stmt).first() is not None


def create_review(db: Session, user: User, data: ReviewCreate) -> Review:
    """
    Create a review and count it in the book's rating summary.

    Raises:
        BookNotFoundError: If the book does not exist
        ReviewConflictError: If the user already reviewed the book
    """
    if db.get(Book, data.book_id) is None:
        raise BookNotFoundError(data.book_id)

    if has_reviewed(db, data.book_id, user.id):
        raise ReviewConflictError()

    review = Review(
        book_id=data.book_id,
        user_id=user.id,
        rating=data.rating,
        content=data.content,
    )

    try:
        db.add(review)
        db.flush()
        apply_rating_change(db, data.book_id, data.rating, 1)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(
            f"Duplicate review rejected by constraint: user={user.id} book={data.book_id}"
        )
        raise ReviewConflictError()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        f"Review {review.id} created: user={user.id} book={data.book_id} "
        f"rating={data.rating}, {_summary(db, data.book_id)}"
    )
    return load_review(db, review.id)


def update_review(db: Session, review_id: int, user_id: int, data: ReviewUpdate) -> Review:
    """
    Apply a partial update to one of user_id's reviews.

    The row is re-read under a row lock inside the write transaction, so
    the rating delta is measured from the committed rating even when
    another request changed it after this one first loaded the review.
    Content-only edits leave the book's summary untouched.

    Raises:
        ReviewNotFoundError: If the review is gone or belongs to someone else
    """
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    try:
        stmt = (
            select(Review)
            .where(Review.id == review_id, Review.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        review = db.execute(stmt).scalar_one_or_none()
        if review is None:
            db.rollback()
            raise ReviewNotFoundError(review_id)

        old_rating = review.rating
        book_id = review.book_id
        for field, value in update_data.items():
            setattr(review, field, value)
        db.flush()

        rating_delta = review.rating - old_rating
        if rating_delta:
            apply_rating_change(db, book_id, rating_delta, 0)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        f"Review {review_id} updated: rating {old_rating} -> {old_rating + rating_delta}, "
        f"{_summary(db, book_id)}"
    )
    return load_review(db, review_id)


def delete_review(db: Session, review_id: int, user_id: int) -> None:
    """
    Delete one of user_id's reviews and remove it from the book's summary.

    The rating subtracted is the one the DELETE actually removed, so a
    second delete of the same review changes nothing.

    Raises:
        ReviewNotFoundError: If the review is gone or belongs to someone else
    """
    stmt = (
        delete(Review)
        .where(Review.id == review_id, Review.user_id == user_id)
        .returning(Review.book_id, Review.rating)
    )

    try:
        removed = db.execute(stmt).first()
        if removed is None:
            db.rollback()
            raise ReviewNotFoundError(review_id)

        book_id, rating = removed
        apply_rating_change(db, book_id, -rating, -1)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Review {review_id} deleted: {_summary(db, book_id)}")
