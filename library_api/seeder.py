# library_api/seeder.py
"""
Fill the database with demo data.

Usage:
    python -m library_api.seeder            # wipe and seed
    python -m library_api.seeder --keep     # seed only if there are no users yet

Every seeded account uses the password "123456"; admin@example.com is an
administrator.
"""

import argparse
import asyncio
import logging
import sys
from datetime import date

from sqlalchemy import func, select

from . import crud, models
from .config import Settings
from .database import Database
from .lending import LendingService
from .logging_config import setup_logging
from .schemas import AuthorCreate, BookCreate, UserCreate

logger = logging.getLogger("library_api.seeder")

DEFAULT_PASSWORD = "123456"

USERS = [
    {"first_name": "Admin", "last_name": "User", "email": "admin@example.com", "role": models.Role.ADMINISTRATOR},
    {"first_name": "John", "last_name": "Doe", "email": "john@example.com"},
    {"first_name": "Jane", "last_name": "Smith", "email": "jane@example.com"},
]

AUTHORS = [
    {
        "name": "F. Scott Fitzgerald",
        "bio": "American novelist, best known for The Great Gatsby.",
        "birth_date": date(1896, 9, 24),
        "nationality": "American",
    },
    {
        "name": "George Orwell",
        "bio": "English novelist and journalist, famous for 1984 and Animal Farm.",
        "birth_date": date(1903, 6, 25),
        "nationality": "British",
    },
    {
        "name": "Jane Austen",
        "bio": "English novelist known for Pride and Prejudice.",
        "birth_date": date(1775, 12, 16),
        "nationality": "British",
    },
]

# (title, author index, description, category, copies)
BOOKS = [
    ("The Great Gatsby", 0, "A novel set in the Jazz Age.", "Fiction", 5),
    ("1984", 1, "A dystopian social science fiction novel.", "Dystopian", 3),
    ("Animal Farm", 1, "An allegorical novella about a farm rebellion.", "Political Satire", 4),
    ("Pride and Prejudice", 2, "A romantic novel of manners.", "Romance", 2),
]

# (user email, book title)
LOANS = [
    ("john@example.com", "1984"),
    ("jane@example.com", "Pride and Prejudice"),
]


async def seed(db: Database, settings: Settings, keep: bool = False) -> bool:
    """Seed ``db``; returns False when ``keep`` is set and data already exists."""
    if not keep:
        await db.drop_all()
    await db.create_all()

    async with db.session() as session:
        if keep:
            count = await session.scalar(select(func.count()).select_from(models.User))
            if count:
                logger.info("Database already has %d users, nothing to seed", count)
                return False

        users = {}
        for data in USERS:
            user = await crud.create_user(session, UserCreate(password=DEFAULT_PASSWORD, **data))
            users[user.email] = user
        logger.info("Users seeded")

        authors = [await crud.create_author(session, AuthorCreate(**data)) for data in AUTHORS]
        logger.info("Authors seeded")

        books = {}
        for title, author_index, description, category, copies in BOOKS:
            book = await crud.create_book(
                session,
                BookCreate(
                    title=title,
                    author=authors[author_index].id,
                    description=description,
                    category=category,
                    copies_available=copies,
                ),
            )
            books[book.title] = book
        logger.info("Books seeded")

        lending = LendingService(session, settings)
        for email, title in LOANS:
            await lending.borrow(users[email].id, books[title].id)
        logger.info("Loans seeded")
    return True


async def _main(keep: bool) -> None:
    settings = Settings()
    db = Database(settings.database_url, echo=settings.echo_sql, timeout=settings.store_timeout)
    try:
        await seed(db, settings, keep=keep)
    finally:
        await db.dispose()


def main(argv=None):
    ap = argparse.ArgumentParser(description="Seed the library database with demo data.")
    ap.add_argument("--keep", action="store_true", help="Do not wipe existing data; skip seeding if users exist.")
    args = ap.parse_args(argv)

    setup_logging(Settings().log_level)
    try:
        asyncio.run(_main(args.keep))
    except Exception:
        logger.exception("Error seeding data")
        sys.exit(1)
    logger.info("Seeding finished")


if __name__ == "__main__":
    main()
