#!/usr/bin/env python3
"""
Rating Recalculation Script

Rebuilds every book's rating summary (rating, review_count) from its
reviews. Review writes keep the summary up to date on their own; run
this after editing reviews directly in the database.

Usage:
    # From project root with venv activated:
    python scripts/recalculate_ratings.py

    # Only some books:
    python scripts/recalculate_ratings.py --book-id 3 --book-id 7
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bookreview.database import SessionLocal
from bookreview.services.ratings import (
    recalculate_all_book_ratings,
    recalculate_book_rating,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def recalculate(book_ids: list[int] | None = None) -> int:
    """
    Recalculate rating summaries.

    Args:
        book_ids: Books to repair; all books when empty or None

    Returns:
        Number of books processed
    """
    db = SessionLocal()
    try:
        if not book_ids:
            return recalculate_all_book_ratings(db)

        for book_id in book_ids:
            recalculate_book_rating(db, book_id)
            logger.info(f"Recalculated rating for book {book_id}")
        return len(book_ids)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Rebuild book rating summaries from their reviews"
    )
    parser.add_argument(
        "--book-id",
        type=int,
        action="append",
        dest="book_ids",
        help="Only recalculate this book (repeatable)",
    )
    args = parser.parse_args()

    count = recalculate(args.book_ids)
    logger.info(f"Done: {count} book(s) processed")


if __name__ == "__main__":
    main()
