"""
API Routers Package

Router Structure:
- books.py: /api/books/* endpoints
- reviews.py: /api/reviews/* endpoints
- auth.py: /api/auth/* endpoints (registration, login, current user)
- users.py: /api/users/* endpoints (profiles)

Each router is imported and registered in main.py.
"""

from bookreview.routers.auth import router as auth_router
from bookreview.routers.books import router as books_router
from bookreview.routers.reviews import router as reviews_router
from bookreview.routers.users import router as users_router

__all__ = [
    "auth_router",
    "books_router",
    "reviews_router",
    "users_router",
]
