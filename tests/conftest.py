"""
pytest Fixtures for Book Review API Tests

Shared fixtures used across all test files.

FIXTURE SCOPES:
- engine: function scope, a fresh in-memory database per test
- db_session: function scope, shared by the test and the app under test
- client: function scope, TestClient with get_db overridden

Routes commit (and on failure roll back) their own transactions, so each
test gets brand new tables instead of an outer transaction to roll back.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting and sets a test secret key
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"

from collections.abc import Generator
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookreview.database import Base, get_db
from bookreview.main import app
from bookreview.models import Book, Review, User
from bookreview.services.security import create_user_token, hash_password

# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory keeps tests fast and self-contained. StaticPool keeps
# the single connection alive; without it each connection would see a
# different empty database.


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine with all tables."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Database session used by both the test and the app."""
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
    session = TestSessionLocal()

    yield session

    session.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    get_db is overridden so every request uses db_session.
    """

    def override_get_db():
        """Provide test database session instead of real one."""
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a sample user for testing."""
    user = User(
        email="testuser@example.com",
        username="testuser",
        hashed_password=hash_password("SecurePass123"),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def second_user(db_session: Session) -> User:
    """Create a second user for testing ownership scenarios."""
    user = User(
        email="seconduser@example.com",
        username="seconduser",
        hashed_password=hash_password("SecurePass456"),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(sample_user: User) -> dict:
    """Authorization header for sample_user."""
    return {"Authorization": f"Bearer {create_user_token(sample_user)}"}


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    """Create a sample book with no reviews."""
    book = Book(
        title="Dune",
        author="Frank Herbert",
        description="Politics, religion and ecology on the desert planet Arrakis.",
        genre="Science Fiction",
        published_date=date(1965, 8, 1),
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def multiple_books(db_session: Session) -> list[Book]:
    """Create books across genres for listing and pagination tests."""
    genres = ["Fiction", "Non-Fiction", "Science Fiction", "Mystery", "Romance"]
    books = []
    for i in range(15):
        book = Book(
            title=f"Test Book {i + 1}",
            author=f"Author {i % 3}",
            description=f"Description for book {i + 1}",
            genre=genres[i % len(genres)],
        )
        books.append(book)
        db_session.add(book)

    db_session.commit()
    for book in books:
        db_session.refresh(book)

    return books


@pytest.fixture
def sample_review(
    db_session: Session,
    sample_book: Book,
    sample_user: User,
) -> Review:
    """
    Create a 4-star review by sample_user on sample_book.

    The book's rating summary is set to match, as a review write would.
    """
    review = Review(
        book_id=sample_book.id,
        user_id=sample_user.id,
        rating=4,
        content="A dense, rewarding read with great world building.",
    )
    db_session.add(review)
    sample_book.rating_total = 4
    sample_book.review_count = 1
    sample_book.rating = 4.0
    db_session.commit()
    db_session.refresh(review)
    return review
