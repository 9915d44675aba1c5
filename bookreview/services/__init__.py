"""
Services Package

Business logic kept separate from HTTP handling (routers), so it can be
reused by scripts and tested in isolation.

Current services:
- rate_limiter.py: Per-client rate limiting with slowapi
- ratings.py: Book rating summary maintenance and statistics
- reviews.py: Transactional review writes
- security.py: Password hashing and session tokens
"""
