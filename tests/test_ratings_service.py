"""
Tests for the Ratings Service

Exercises the rating summary helpers directly against the database.
"""

import pytest
from sqlalchemy.orm import Session

from bookreview.models import Book, Review, User
from bookreview.services.ratings import (
    apply_rating_change,
    compute_mean,
    get_rating_distribution,
    recalculate_all_book_ratings,
    recalculate_book_rating,
)


class TestComputeMean:
    @pytest.mark.parametrize(
        "total, count, expected",
        [(0, 0, 0.0), (5, 1, 5.0), (9, 2, 4.5), (7, 3, 7 / 3)],
    )
    def test_compute_mean(self, total, count, expected):
        assert compute_mean(total, count) == pytest.approx(expected)


class TestApplyRatingChange:
    def test_add_then_remove(self, db_session: Session, sample_book: Book):
        apply_rating_change(db_session, sample_book.id, 5, 1)
        apply_rating_change(db_session, sample_book.id, 3, 1)
        db_session.commit()

        assert sample_book.review_count == 2
        assert sample_book.rating_total == 8
        assert sample_book.rating == pytest.approx(4.0)

        apply_rating_change(db_session, sample_book.id, -5, -1)
        apply_rating_change(db_session, sample_book.id, -3, -1)
        db_session.commit()

        assert sample_book.review_count == 0
        assert sample_book.rating_total == 0
        assert sample_book.rating == 0

    def test_rating_change_without_count_change(self, db_session: Session, sample_review: Review):
        apply_rating_change(db_session, sample_review.book_id, -3, 0)
        db_session.commit()

        book = db_session.get(Book, sample_review.book_id)
        assert book.review_count == 1
        assert book.rating == pytest.approx(1.0)

    def test_rollback_discards_change(self, db_session: Session, sample_book: Book):
        apply_rating_change(db_session, sample_book.id, 4, 1)
        db_session.rollback()

        assert sample_book.review_count == 0
        assert sample_book.rating == 0


class TestRecalculate:
    def test_recalculate_repairs_drifted_summary(
        self, db_session: Session, sample_review: Review, second_user: User
    ):
        db_session.add(
            Review(
                book_id=sample_review.book_id,
                user_id=second_user.id,
                rating=1,
                content="Could not get into it at all.",
            )
        )
        db_session.commit()

        recalculate_book_rating(db_session, sample_review.book_id)

        book = db_session.get(Book, sample_review.book_id)
        assert book.review_count == 2
        assert book.rating_total == 5
        assert book.rating == pytest.approx(2.5)

    def test_recalculate_book_without_reviews(self, db_session: Session, sample_book: Book):
        sample_book.rating = 3.0
        sample_book.review_count = 7
        sample_book.rating_total = 21
        db_session.commit()

        recalculate_book_rating(db_session, sample_book.id)

        assert sample_book.rating == 0
        assert sample_book.review_count == 0

    def test_recalculate_all(self, db_session: Session, multiple_books: list[Book]):
        assert recalculate_all_book_ratings(db_session) == len(multiple_books)


class TestRatingDistribution:
    def test_distribution(self, db_session: Session, sample_review: Review, second_user: User):
        db_session.add(
            Review(
                book_id=sample_review.book_id,
                user_id=second_user.id,
                rating=4,
                content="Another four star read for me.",
            )
        )
        db_session.commit()

        assert get_rating_distribution(db_session, sample_review.book_id) == {
            1: 0,
            2: 0,
            3: 0,
            4: 2,
            5: 0,
        }
