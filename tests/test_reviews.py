"""
Tests for Reviews

Tests the review system:
- List reviews (by book, by user)
- Create a review (authenticated, one per book)
- Get, update and delete a review (owner only)
- The book's rating summary after every write

Business Rules:
- One review per user per book
- Someone else's review answers 404
- Book.rating is the mean of its review ratings, 0 with no reviews
"""

from collections.abc import Generator

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from bookreview.models import Book, Review, User
from bookreview.schemas.review import ReviewUpdate
from bookreview.services import reviews as review_service
from bookreview.services.security import create_user_token, hash_password

CONTENT = "Thoughtful, well paced and hard to put down."


# =============================================================================
# Helper Functions
# =============================================================================


def get_auth_header(user: User) -> dict:
    """Create authorization header for a user."""
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def make_users(db_session: Session, count: int) -> list[User]:
    users = [
        User(
            email=f"reviewer{i}@example.com",
            username=f"reviewer{i}",
            hashed_password=hash_password("Pass1234"),
        )
        for i in range(count)
    ]
    db_session.add_all(users)
    db_session.commit()
    return users


def assert_summary_matches_reviews(db_session: Session, book_id: int) -> None:
    """Book.rating / review_count agree with the stored reviews."""
    db_session.expire_all()
    book = db_session.get(Book, book_id)
    ratings = db_session.execute(
        select(Review.rating).where(Review.book_id == book_id)
    ).scalars().all()

    assert book.review_count == len(ratings)
    expected = sum(ratings) / len(ratings) if ratings else 0
    assert book.rating == pytest.approx(expected)


# =============================================================================
# List Reviews
# =============================================================================


class TestListReviews:
    """Tests for GET /api/reviews"""

    def test_list_reviews_empty(self, client: TestClient, sample_book: Book):
        response = client.get(f"/api/reviews?book_id={sample_book.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["items"] == []
        assert data["total"] == 0

    def test_list_reviews_embeds_author(self, client: TestClient, sample_review: Review):
        response = client.get(f"/api/reviews?book_id={sample_review.book_id}")

        data = response.json()
        assert data["total"] == 1
        review = data["items"][0]
        assert review["rating"] == 4
        assert review["user"] == {"id": sample_review.user_id, "username": "testuser"}
        assert "email" not in review["user"]

    def test_list_reviews_filters_by_book(
        self, client: TestClient, db_session: Session, sample_review: Review
    ):
        other = Book(title="Emma", author="Jane Austen", description="Matchmaking.", genre="Fiction")
        db_session.add(other)
        db_session.commit()

        response = client.get(f"/api/reviews?book_id={other.id}")
        assert response.json()["total"] == 0

    def test_list_reviews_filters_by_user(
        self, client: TestClient, sample_review: Review, second_user: User
    ):
        response = client.get(f"/api/reviews?user_id={sample_review.user_id}")
        assert response.json()["total"] == 1

        response = client.get(f"/api/reviews?user_id={second_user.id}")
        assert response.json()["total"] == 0

    def test_list_reviews_pagination(
        self, client: TestClient, db_session: Session, sample_book: Book
    ):
        users = make_users(db_session, 12)
        for i, user in enumerate(users):
            db_session.add(
                Review(book_id=sample_book.id, user_id=user.id, rating=(i % 5) + 1, content=CONTENT)
            )
        db_session.commit()

        response = client.get(f"/api/reviews?book_id={sample_book.id}&per_page=5")
        data = response.json()
        assert data["total"] == 12
        assert len(data["items"]) == 5
        assert data["pages"] == 3

        response = client.get(f"/api/reviews?book_id={sample_book.id}&page=3&per_page=5")
        assert len(response.json()["items"]) == 2


# =============================================================================
# Create Review
# =============================================================================


class TestCreateReview:
    """Tests for POST /api/reviews"""

    def test_create_review_success(
        self, client: TestClient, sample_book: Book, sample_user: User
    ):
        response = client.post(
            "/api/reviews",
            json={"book_id": sample_book.id, "rating": 5, "content": CONTENT},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["rating"] == 5
        assert data["content"] == CONTENT
        assert data["user"]["username"] == sample_user.username

        book = client.get(f"/api/books/{sample_book.id}").json()
        assert book["rating"] == 5.0
        assert book["review_count"] == 1

    def test_create_review_trims_content(
        self, client: TestClient, sample_book: Book, sample_user: User
    ):
        response = client.post(
            "/api/reviews",
            json={"book_id": sample_book.id, "rating": 3, "content": f"   {CONTENT}   "},
            headers=get_auth_header(sample_user),
        )
        assert response.json()["content"] == CONTENT

    def test_create_review_requires_auth(self, client: TestClient, sample_book: Book):
        response = client.post(
            "/api/reviews",
            json={"book_id": sample_book.id, "rating": 5, "content": CONTENT},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_review_invalid_token(self, client: TestClient, sample_book: Book):
        response = client.post(
            "/api/reviews",
            json={"book_id": sample_book.id, "rating": 5, "content": CONTENT},
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_review_book_not_found(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/reviews",
            json={"book_id": 99999, "rating": 5, "content": CONTENT},
            headers=get_auth_header(sample_user),
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_create_review_duplicate(
        self, client: TestClient, db_session: Session, sample_review: Review, sample_user: User
    ):
        response = client.post(
            "/api/reviews",
            json={"book_id": sample_review.book_id, "rating": 1, "content": CONTENT},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "You have already reviewed this book"
        assert_summary_matches_reviews(db_session, sample_review.book_id)

    def test_duplicate_past_precheck_hits_constraint(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        sample_user: User,
        monkeypatch,
    ):
        # A concurrent request that passed the existence check before this one committed
        monkeypatch.setattr(
            "bookreview.services.reviews.has_reviewed", lambda *args, **kwargs: False
        )

        response = client.post(
            "/api/reviews",
            json={"book_id": sample_review.book_id, "rating": 1, "content": CONTENT},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "You have already reviewed this book"
        count = db_session.execute(select(func.count(Review.id))).scalar()
        assert count == 1
        assert_summary_matches_reviews(db_session, sample_review.book_id)
        book = db_session.get(Book, sample_review.book_id)
        assert (book.rating, book.review_count) == (4.0, 1)

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_create_review_rating_out_of_range(
        self, client: TestClient, sample_book: Book, sample_user: User, rating: int
    ):
        response = client.post(
            "/api/reviews",
            json={"book_id": sample_book.id, "rating": rating, "content": CONTENT},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["detail"] == "Validation failed"
        assert body["errors"][0]["field"] == "rating"

    @pytest.mark.parametrize("content", ["too short", " " * 20 + "short", "x" * 1001])
    def test_create_review_content_length(
        self, client: TestClient, sample_book: Book, sample_user: User, content: str
    ):
        response = client.post(
            "/api/reviews",
            json={"book_id": sample_book.id, "rating": 3, "content": content},
            headers=get_auth_header(sample_user),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_failed_rating_update_rolls_back_review(
        self,
        client: TestClient,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
        monkeypatch,
    ):
        def broken_rating_change(*args, **kwargs):
            raise SQLAlchemyError("rating update failed")

        monkeypatch.setattr(
            "bookreview.services.reviews.apply_rating_change", broken_rating_change
        )

        response = client.post(
            "/api/reviews",
            json={"book_id": sample_book.id, "rating": 5, "content": CONTENT},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        count = db_session.execute(select(func.count(Review.id))).scalar()
        assert count == 0
        assert_summary_matches_reviews(db_session, sample_book.id)


# =============================================================================
# Get Review
# =============================================================================


class TestGetReview:
    """Tests for GET /api/reviews/{review_id}"""

    def test_get_review_success(self, client: TestClient, sample_review: Review):
        response = client.get(f"/api/reviews/{sample_review.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == sample_review.id

    def test_get_review_not_found(self, client: TestClient):
        response = client.get("/api/reviews/99999")
        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Update Review
# =============================================================================


class TestUpdateReview:
    """Tests for PUT /api/reviews/{review_id}"""

    def test_update_review_rating(
        self, client: TestClient, db_session: Session, sample_review: Review, sample_user: User
    ):
        response = client.put(
            f"/api/reviews/{sample_review.id}",
            json={"rating": 2},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["rating"] == 2
        assert response.json()["content"] == sample_review.content

        book = client.get(f"/api/books/{sample_review.book_id}").json()
        assert book["rating"] == 2.0
        assert book["review_count"] == 1
        assert_summary_matches_reviews(db_session, sample_review.book_id)

    def test_update_review_content_only(
        self, client: TestClient, sample_review: Review, sample_user: User
    ):
        new_content = "Even better on a second reading."
        response = client.put(
            f"/api/reviews/{sample_review.id}",
            json={"content": new_content},
            headers=get_auth_header(sample_user),
        )

        assert response.json()["content"] == new_content
        assert response.json()["rating"] == 4

    def test_update_review_not_owner(
        self, client: TestClient, sample_review: Review, second_user: User
    ):
        response = client.put(
            f"/api/reviews/{sample_review.id}",
            json={"rating": 1},
            headers=get_auth_header(second_user),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Review not found"

    def test_update_review_invalid_rating(
        self, client: TestClient, sample_review: Review, sample_user: User
    ):
        response = client.put(
            f"/api/reviews/{sample_review.id}",
            json={"rating": 6},
            headers=get_auth_header(sample_user),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_update_review_requires_auth(self, client: TestClient, sample_review: Review):
        response = client.put(f"/api/reviews/{sample_review.id}", json={"rating": 1})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Delete Review
# =============================================================================


class TestDeleteReview:
    """Tests for DELETE /api/reviews/{review_id}"""

    def test_delete_last_review_resets_rating(
        self, client: TestClient, db_session: Session, sample_review: Review, sample_user: User
    ):
        book_id = sample_review.book_id
        response = client.delete(
            f"/api/reviews/{sample_review.id}",
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT

        book = client.get(f"/api/books/{book_id}").json()
        assert book["rating"] == 0
        assert book["review_count"] == 0
        assert_summary_matches_reviews(db_session, book_id)

    def test_delete_review_not_owner(
        self, client: TestClient, sample_review: Review, second_user: User
    ):
        response = client.delete(
            f"/api/reviews/{sample_review.id}",
            headers=get_auth_header(second_user),
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = client.get(f"/api/reviews/{sample_review.id}")
        assert response.status_code == status.HTTP_200_OK

    def test_delete_review_not_found(self, client: TestClient, sample_user: User):
        response = client.delete("/api/reviews/99999", headers=get_auth_header(sample_user))
        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Rating Summary
# =============================================================================


class TestRatingSummary:
    """The book's rating and review_count follow every review write."""

    def test_summary_tracks_creates_updates_and_deletes(
        self, client: TestClient, db_session: Session, sample_book: Book
    ):
        users = make_users(db_session, 3)
        headers = [get_auth_header(u) for u in users]
        review_ids = []

        for user_headers, rating in zip(headers, [5, 4, 2]):
            response = client.post(
                "/api/reviews",
                json={"book_id": sample_book.id, "rating": rating, "content": CONTENT},
                headers=user_headers,
            )
            assert response.status_code == status.HTTP_201_CREATED
            review_ids.append(response.json()["id"])
            assert_summary_matches_reviews(db_session, sample_book.id)

        book = client.get(f"/api/books/{sample_book.id}").json()
        assert book["review_count"] == 3
        assert book["rating"] == pytest.approx(11 / 3)

        client.put(f"/api/reviews/{review_ids[2]}", json={"rating": 5}, headers=headers[2])
        assert_summary_matches_reviews(db_session, sample_book.id)

        client.delete(f"/api/reviews/{review_ids[0]}", headers=headers[0])
        assert_summary_matches_reviews(db_session, sample_book.id)

        book = client.get(f"/api/books/{sample_book.id}").json()
        assert book["review_count"] == 2
        assert book["rating"] == pytest.approx(4.5)


class TestConcurrentReviewWrites:
    """Two sessions that loaded the same review before either one wrote."""

    @pytest.fixture
    def sessions(self, engine) -> Generator[tuple[Session, Session], None, None]:
        make_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        first, second = make_session(), make_session()

        yield first, second

        first.close()
        second.close()

    def test_double_delete_counts_once(
        self, db_session: Session, sample_review: Review, sessions
    ):
        review_id, user_id, book_id = (
            sample_review.id, sample_review.user_id, sample_review.book_id
        )
        first, second = sessions
        assert first.get(Review, review_id).rating == 4
        assert second.get(Review, review_id).rating == 4

        review_service.delete_review(first, review_id, user_id)
        with pytest.raises(review_service.ReviewNotFoundError):
            review_service.delete_review(second, review_id, user_id)

        db_session.expire_all()
        book = db_session.get(Book, book_id)
        remaining = db_session.execute(
            select(Review.id).where(Review.book_id == book_id)
        ).scalars().all()
        assert (book.rating, book.review_count, remaining) == (0.0, 0, [])
        assert book.rating_total == 0

    def test_update_uses_committed_rating(
        self, db_session: Session, sample_review: Review, sessions
    ):
        review_id, user_id, book_id = (
            sample_review.id, sample_review.user_id, sample_review.book_id
        )
        first, second = sessions
        assert first.get(Review, review_id).rating == 4
        assert second.get(Review, review_id).rating == 4

        review_service.update_review(first, review_id, user_id, ReviewUpdate(rating=5))
        updated = review_service.update_review(
            second, review_id, user_id, ReviewUpdate(rating=2)
        )
        assert updated.rating == 2

        db_session.expire_all()
        book = db_session.get(Book, book_id)
        assert book.rating_total == 2
        assert book.review_count == 1
        assert book.rating == pytest.approx(2.0)
        assert_summary_matches_reviews(db_session, book_id)

    def test_write_by_non_owner_changes_nothing(
        self, db_session: Session, sample_review: Review, second_user: User
    ):
        review_id, book_id = sample_review.id, sample_review.book_id

        with pytest.raises(review_service.ReviewNotFoundError):
            review_service.update_review(
                db_session, review_id, second_user.id, ReviewUpdate(rating=1)
            )
        with pytest.raises(review_service.ReviewNotFoundError):
            review_service.delete_review(db_session, review_id, second_user.id)

        db_session.expire_all()
        assert db_session.get(Review, review_id).rating == 4
        book = db_session.get(Book, book_id)
        assert (book.rating, book.review_count) == (4.0, 1)


class TestReviewConstraints:
    """Database-level guarantees on the reviews table."""

    def test_unique_review_per_user_and_book(
        self, db_session: Session, sample_review: Review
    ):
        db_session.add(
            Review(
                book_id=sample_review.book_id,
                user_id=sample_review.user_id,
                rating=2,
                content=CONTENT,
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_rating_check_constraint(
        self, db_session: Session, sample_book: Book, sample_user: User
    ):
        db_session.add(
            Review(book_id=sample_book.id, user_id=sample_user.id, rating=9, content=CONTENT)
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
