"""
Book Review API Package

REST backend for a book-review site: books, reviews with star ratings,
and user accounts with token authentication.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and declarative base
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection (sessions, pagination, current user)
- models/: SQLAlchemy ORM models (Book, Review, User)
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (security, rate limiting, review aggregation)
- client.py: HTTP client used by frontends and scripts
"""

__version__ = "0.1.0"
