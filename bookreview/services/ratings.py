"""
Ratings Service

Maintains the denormalized rating summary on the Book model:
- rating: mean of all review ratings (0 when there are none)
- review_count: number of reviews
- rating_total: sum of review ratings, the running total behind the mean

Incremental Updates
===================
Review writes call apply_rating_change() inside their own transaction.
It issues one UPDATE whose new values are computed by the database from
the row's current values, so two concurrent review writes cannot
overwrite each other's contribution with a stale read, and the review row
and the summary are committed (or rolled back) together.

recalculate_book_rating() rebuilds the summary from the review set and is
used to repair data, e.g. after manual database edits.
"""

import logging

from sqlalchemy import Float, case, cast, func, select, update
from sqlalchemy.orm import Session

from bookreview.models import Book, Review

logger = logging.getLogger(__name__)


def compute_mean(total: int, count: int) -> float:
    """Mean rating for a running total, 0 for an empty review set."""
    if count <= 0:
        return 0.0
    return total / count


def apply_rating_change(
    db: Session,
    book_id: int,
    rating_delta: int,
    count_delta: int,
) -> None:
    """
    Atomically adjust a book's rating summary.

    Does not commit; the caller commits together with the review write.

    Args:
        db: Database session
        book_id: ID of the book whose reviews changed
        rating_delta: Change to the sum of ratings
        count_delta: Change to the number of reviews (+1, 0 or -1)
    """
    new_total = Book.rating_total + rating_delta
    new_count = Book.review_count + count_delta

    stmt = (
        update(Book)
        .where(Book.id == book_id)
        .values(
            rating_total=new_total,
            review_count=new_count,
            rating=case(
                (new_count > 0, cast(new_total, Float) / new_count),
                else_=0.0,
            ),
        )
        .execution_options(synchronize_session=False)
    )
    db.execute(stmt)


def recalculate_book_rating(db: Session, book_id: int) -> None:
    """
    Rebuild a book's rating summary from its reviews.

    Args:
        db: Database session
        book_id: ID of the book to update

    Note:
        This function commits the changes to the database.
    """
    stmt = select(
        func.count(Review.id),
        func.coalesce(func.sum(Review.rating), 0),
    ).where(Review.book_id == book_id)

    review_count, rating_total = db.execute(stmt).one()

    book = db.get(Book, book_id)
    if book:
        book.review_count = review_count
        book.rating_total = int(rating_total)
        book.rating = compute_mean(int(rating_total), review_count)
        db.commit()


def recalculate_all_book_ratings(db: Session) -> int:
    """
    Rebuild the rating summary for every book.

    Returns:
        Number of books updated
    """
    book_ids = db.execute(select(Book.id)).scalars().all()

    for book_id in book_ids:
        recalculate_book_rating(db, book_id)

    logger.info(f"Recalculated ratings for {len(book_ids)} books")
    return len(book_ids)


def get_rating_distribution(db: Session, book_id: int) -> dict[int, int]:
    """Count of reviews for each star value 1-5."""
    distribution = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    stmt = (
        select(Review.rating, func.count(Review.id))
        .where(Review.book_id == book_id)
        .group_by(Review.rating)
    )
    for rating, count in db.execute(stmt).all():
        distribution[rating] = count
    return distribution
