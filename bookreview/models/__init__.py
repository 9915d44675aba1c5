"""
SQLAlchemy Models Package

Model Relationships:
- Book -> Review: One-to-Many (a book has many reviews)
- User -> Review: One-to-Many (a user writes many reviews, one per book)

Import all models here to:
1. Make them available as: from bookreview.models import Book, Review, User
2. Ensure Alembic discovers them for migrations
"""

from bookreview.models.book import Book
from bookreview.models.review import Review
from bookreview.models.user import User

__all__ = [
    "Book",
    "Review",
    "User",
]
