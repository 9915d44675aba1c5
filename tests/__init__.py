"""
Test Suite for the Book Review API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_books.py: /api/books endpoints
- test_reviews.py: /api/reviews endpoints and the rating summary
- test_auth.py: registration, login, current user, login rate limit
- test_users.py: /api/users profiles
- test_ratings_service.py: rating summary helpers
- test_client.py: API client and its auth state

Running Tests:
    pip install -e ".[test]"
    pytest
    pytest tests/test_reviews.py -v
"""
