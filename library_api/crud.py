# library_api/crud.py
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from . import models
from .auth import hash_password
from .errors import Conflict, NotFound, Unavailable
from .schemas import (
    AuthorCreate,
    AuthorUpdate,
    BookCreate,
    BookUpdate,
    UserCreate,
    UserRegister,
    UserSelfUpdate,
    UserUpdate,
)

logger = logging.getLogger(__name__)


def book_loader():
    return (selectinload(models.Book.author), selectinload(models.Book.borrowers))


def user_loader():
    return (selectinload(models.User.borrowed_books).options(*book_loader()),)


def author_loader():
    return (selectinload(models.Author.books),)


async def _commit(db: AsyncSession, email: Optional[str] = None):
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        if email is not None:
            raise Conflict(Conflict.DUPLICATE_EMAIL, "User already exists")
        raise
    except StaleDataError:
        await db.rollback()
        raise Unavailable("Record was modified concurrently, retry the request")


# --- Users ---------------------------------------------------------------

async def get_user(db: AsyncSession, user_id: str) -> Optional[models.User]:
    result = await db.execute(
        select(models.User)
        .where(models.User.id == user_id)
        .options(*user_loader())
    )
    return result.scalar_one_or_none()


async def get_user_or_404(db: AsyncSession, user_id: str) -> models.User:
    user = await get_user(db, user_id)
    if user is None:
        raise NotFound("User")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[models.User]:
    result = await db.execute(
        select(models.User).where(models.User.email == email.lower()).options(*user_loader())
    )
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[models.User]:
    result = await db.execute(
        select(models.User)
        .options(*user_loader())
        .order_by(models.User.last_name, models.User.first_name)
        .offset(skip)
        .limit(limit)
    )
    return result.scalars().all()


async def _ensure_email_free(db: AsyncSession, email: str, user_id: Optional[str] = None):
    existing = await db.execute(select(models.User.id).where(models.User.email == email))
    found = existing.scalar_one_or_none()
    if found is not None and found != user_id:
        raise Conflict(Conflict.DUPLICATE_EMAIL, "User already exists")


async def create_user(db: AsyncSession, user_in: UserRegister) -> models.User:
    email = user_in.email.lower()
    await _ensure_email_free(db, email)
    role = user_in.role if isinstance(user_in, UserCreate) else models.Role.ORDINARY
    db_user = models.User(
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        email=email,
        hashed_password=hash_password(user_in.password),
        role=role,
    )
    db.add(db_user)
    await _commit(db, email=email)
    logger.info("Created user %s (%s, role=%s)", db_user.id, email, role.value)
    return await get_user(db, db_user.id)


async def update_user(db: AsyncSession, user: models.User, user_update: UserUpdate | UserSelfUpdate) -> models.User:
    updates = user_update.model_dump(exclude_unset=True)
    if "email" in updates:
        updates["email"] = updates["email"].lower()
        await _ensure_email_free(db, updates["email"], user.id)
    if "password" in updates:
        updates["hashed_password"] = hash_password(updates.pop("password"))
    for key, value in updates.items():
        setattr(user, key, value)
    await _commit(db, email=updates.get("email"))
    logger.info("Updated user %s fields=%s", user.id, sorted(updates))
    return await get_user(db, user.id)


async def delete_user(db: AsyncSession, user: models.User) -> None:
    """Remove ``user``; callers return its books first (see LendingService.release_all)."""
    await db.delete(user)
    await _commit(db)
    logger.info("Deleted user %s", user.id)


# --- Authors -------------------------------------------------------------

async def get_author(db: AsyncSession, author_id: str) -> Optional[models.Author]:
    result = await db.execute(
        select(models.Author)
        .where(models.Author.id == author_id)
        .options(*author_loader())
    )
    return result.scalar_one_or_none()


async def get_author_or_404(db: AsyncSession, author_id: str) -> models.Author:
    author = await get_author(db, author_id)
    if author is None:
        raise NotFound("Author")
    return author


async def list_authors(db: AsyncSession, skip: int = 0, limit: int = 100, search: str = None) -> List[models.Author]:
    query = select(models.Author).options(*author_loader())
    if search:
        query = query.where(models.Author.name.ilike(f"%{search}%"))
    result = await db.execute(query.order_by(models.Author.name).offset(skip).limit(limit))
    return result.scalars().all()


async def _attach_books(db: AsyncSession, author: models.Author, book_ids: List[str]):
    # A book has exactly one author, so listing it here moves it.
    await db.flush()
    for book_id in book_ids:
        book = await db.get(models.Book, book_id)
        if book is None:
            raise NotFound("Book")
        book.author_id = author.id


async def create_author(db: AsyncSession, author_in: AuthorCreate) -> models.Author:
    data = author_in.model_dump(exclude={"books"})
    db_author = models.Author(**data)
    db.add(db_author)
    if author_in.books:
        await _attach_books(db, db_author, author_in.books)
    await _commit(db)
    logger.info("Created author %s (%s)", db_author.id, db_author.name)
    return await get_author(db, db_author.id)


async def update_author(db: AsyncSession, author: models.Author, author_update: AuthorUpdate) -> models.Author:
    updates = author_update.model_dump(exclude_unset=True)
    book_ids = updates.pop("books", None)
    for key, value in updates.items():
        setattr(author, key, value)
    if book_ids:
        await _attach_books(db, author, book_ids)
    await _commit(db)
    # books were moved through their foreign key, reload the collection
    db.expire(author, ["books"])
    logger.info("Updated author %s", author.id)
    return await get_author(db, author.id)


async def delete_author(db: AsyncSession, author: models.Author) -> None:
    if author.books:
        raise Conflict(Conflict.AUTHOR_HAS_BOOKS, "Author still has books in the catalog")
    await db.delete(author)
    await _commit(db)
    logger.info("Deleted author %s", author.id)


# --- Books ---------------------------------------------------------------

async def get_book(db: AsyncSession, book_id: str) -> Optional[models.Book]:
    result = await db.execute(
        select(models.Book)
        .where(models.Book.id == book_id)
        .options(*book_loader())
    )
    return result.scalar_one_or_none()


async def get_book_or_404(db: AsyncSession, book_id: str) -> models.Book:
    book = await get_book(db, book_id)
    if book is None:
        raise NotFound("Book")
    return book


async def get_books(
    db: AsyncSession,
    author: str = None,
    category: str = None,
    search: str = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.Book]:
    query = select(models.Book).options(*book_loader())
    if author:
        query = query.where(models.Book.author_id == author)
    if category:
        query = query.where(models.Book.category == category)
    if search:
        query = query.where(models.Book.title.ilike(f"%{search}%"))
    result = await db.execute(query.order_by(models.Book.title).offset(skip).limit(limit))
    return result.scalars().all()


async def create_book(db: AsyncSession, book: BookCreate) -> models.Book:
    await get_author_or_404(db, book.author)
    db_book = models.Book(
        title=book.title,
        author_id=book.author,
        description=book.description,
        category=book.category,
        copies_available=book.copies_available,
        total_copies=book.copies_available,
    )
    db.add(db_book)
    await _commit(db)
    logger.info("Created book %s (%s, copies=%d)", db_book.id, db_book.title, db_book.copies_available)
    return await get_book(db, db_book.id)


async def update_book(db: AsyncSession, book: models.Book, book_update: BookUpdate) -> models.Book:
    updates = book_update.model_dump(exclude_unset=True)
    if "author" in updates:
        author = await get_author_or_404(db, updates.pop("author"))
        book.author_id = author.id
    for key, value in updates.items():
        setattr(book, key, value)
    if "copies_available" in updates:
        book.total_copies = book.copies_available + len(book.borrowers)
    await _commit(db)
    db.expire(book, ["author"])
    logger.info("Updated book %s fields=%s", book.id, sorted(book_update.model_fields_set))
    return await get_book(db, book.id)


async def delete_book(db: AsyncSession, book: models.Book) -> None:
    # borrowers is loaded, so the ORM also removes the matching borrow rows
    released = len(book.borrowers)
    await db.delete(book)
    await _commit(db)
    logger.info("Deleted book %s (released from %d borrowers)", book.id, released)
