#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample books for development.

USAGE:
    # From the project root with the virtualenv activated
    python scripts/seed_data.py
    python scripts/seed_data.py --keep-existing

This script:
1. Connects to the database using app settings
2. Creates tables if they don't exist
3. Clears existing data (unless --keep-existing)
4. Creates sample books across the browsing genres
"""

import argparse
import sys
from datetime import date
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bookreview.database import SessionLocal, create_tables
from bookreview.models import Book, Review, User

SAMPLE_BOOKS = [
    {
        "title": "Pride and Prejudice",
        "author": "Jane Austen",
        "description": "Elizabeth Bennet and Mr. Darcy misjudge each other across the drawing rooms of Regency England.",
        "genre": "Fiction",
        "published_date": date(1813, 1, 28),
    },
    {
        "title": "The Old Man and the Sea",
        "author": "Ernest Hemingway",
        "description": "An aging Cuban fisherman fights a giant marlin far out in the Gulf Stream.",
        "genre": "Fiction",
        "published_date": date(1952, 9, 1),
    },
    {
        "title": "Sapiens",
        "author": "Yuval Noah Harari",
        "description": "A brief history of humankind from the Stone Age to the present.",
        "genre": "Non-Fiction",
        "published_date": date(2011, 1, 1),
    },
    {
        "title": "The Immortal Life of Henrietta Lacks",
        "author": "Rebecca Skloot",
        "description": "The story behind the HeLa cell line and the woman it came from.",
        "genre": "Non-Fiction",
        "published_date": date(2010, 2, 2),
    },
    {
        "title": "Dune",
        "author": "Frank Herbert",
        "description": "Politics, religion and ecology collide on the desert planet Arrakis.",
        "genre": "Science Fiction",
        "published_date": date(1965, 8, 1),
    },
    {
        "title": "Foundation",
        "author": "Isaac Asimov",
        "description": "A mathematician plans to shorten the dark age after the fall of the Galactic Empire.",
        "genre": "Science Fiction",
        "published_date": date(1951, 5, 1),
    },
    {
        "title": "Murder on the Orient Express",
        "author": "Agatha Christie",
        "description": "Hercule Poirot investigates a murder on a train stuck in a snowdrift.",
        "genre": "Mystery",
        "published_date": date(1934, 1, 1),
    },
    {
        "title": "The Hound of the Baskervilles",
        "author": "Arthur Conan Doyle",
        "description": "Sherlock Holmes looks into a family curse on the Devon moors.",
        "genre": "Mystery",
        "published_date": date(1902, 4, 1),
    },
    {
        "title": "Jane Eyre",
        "author": "Charlotte Bronte",
        "description": "An orphaned governess falls in love with her brooding employer at Thornfield Hall.",
        "genre": "Romance",
        "published_date": date(1847, 10, 16),
    },
    {
        "title": "Outlander",
        "author": "Diana Gabaldon",
        "description": "A World War II nurse is swept back in time to eighteenth-century Scotland.",
        "genre": "Romance",
        "published_date": date(1991, 6, 1),
    },
]


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    db.execute(delete(Review))
    db.execute(delete(Book))
    db.execute(delete(User))
    db.commit()
    print("Data cleared.")


def create_books(db: Session) -> list[Book]:
    """Create the sample books. The rating summary starts empty."""
    print("Creating books...")

    books = [Book(**data) for data in SAMPLE_BOOKS]
    db.add_all(books)
    db.commit()

    print(f"Created {len(books)} books.")
    return books


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()

    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        books = create_books(db)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Books: {len(books)}")
        print("\nYou can now access the API at http://localhost:5000")
        print("API documentation at http://localhost:5000/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the database with sample books")
    parser.add_argument(
        "--keep-existing",
        action="store_true",
        help="Add the sample books without clearing existing data",
    )
    args = parser.parse_args()

    seed_database(clear_existing=not args.keep_existing)


if __name__ == "__main__":
    main()
