# library_api/lending.py
import asyncio
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from . import crud, models
from .config import Settings
from .errors import Conflict, NotFound, Unavailable

logger = logging.getLogger(__name__)


class LendingService:
    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or Settings()

    async def borrow(self, user_id: str, book_id: str) -> models.Book:
        book = await self._run("borrow", self._borrow_once, user_id, book_id)
        logger.info("User %s borrowed book %s (%d left)", user_id, book_id, book.copies_available)
        return book

    async def return_book(self, user_id: str, book_id: str) -> models.Book:
        book = await self._run("return", self._return_once, user_id, book_id)
        logger.info("User %s returned book %s (%d available)", user_id, book_id, book.copies_available)
        return book

    async def list_borrowed(self, user_id: str) -> List[models.Book]:
        user = await crud.get_user_or_404(self.db, user_id)
        return list(user.borrowed_books)

    async def release_all(self, user: models.User) -> int:
        """Return every book ``user`` holds without committing.

        Used before deleting the user so the copies go back on the shelf in
        the same transaction as the deletion.
        """
        user_id = user.id
        books = list(user.borrowed_books)
        for book in books:
            book.borrowers.remove(user)
            book.copies_available = min(book.total_copies, book.copies_available + 1)
        try:
            await self.db.flush()
        except (StaleDataError, IntegrityError):
            await self.db.rollback()
            logger.warning("Releasing books of user %s lost a race with a concurrent loan", user_id)
            raise Unavailable("A book held by this user changed concurrently, please retry")
        if books:
            logger.info("Released %d books held by user %s", len(books), user_id)
        return len(books)

    async def _run(self, action: str, attempt, user_id: str, book_id: str) -> models.Book:
        try:
            return await asyncio.wait_for(
                self._retry(action, attempt, user_id, book_id),
                timeout=self.settings.store_timeout,
            )
        except asyncio.TimeoutError:
            await self.db.rollback()
            logger.warning("%s of book %s by user %s timed out", action, book_id, user_id)
            raise Unavailable("The library store did not respond in time, please retry")
        except OperationalError as exc:
            await self.db.rollback()
            logger.warning("%s of book %s by user %s failed: %s", action, book_id, user_id, exc)
            raise Unavailable("The library store is temporarily unavailable, please retry")

    async def _retry(self, action: str, attempt, user_id: str, book_id: str) -> models.Book:
        # Book.version makes a concurrent write fail the flush with StaleDataError
        for number in range(1, self.settings.lending_max_attempts + 1):
            try:
                await attempt(user_id, book_id)
                await self.db.commit()
            except (StaleDataError, IntegrityError):
                await self.db.rollback()
                logger.debug("%s of book %s by user %s lost a race (attempt %d)", action, book_id, user_id, number)
                continue
            except Exception:
                await self.db.rollback()
                raise
            return await crud.get_book(self.db, book_id)
        raise Unavailable(f"Could not {action} the book due to concurrent updates, please retry")

    async def _load(self, user_id: str, book_id: str):
        user = await crud.get_user(self.db, user_id)
        if user is None:
            raise NotFound("User")
        book = await crud.get_book(self.db, book_id)
        if book is None:
            raise NotFound("Book")
        return user, book

    async def _borrow_once(self, user_id: str, book_id: str) -> None:
        user, book = await self._load(user_id, book_id)
        if book.copies_available < 1:
            raise Conflict(Conflict.NO_COPIES_AVAILABLE, f"No copies of '{book.title}' are available")
        if user in book.borrowers:
            raise Conflict(Conflict.ALREADY_BORROWED, f"You have already borrowed '{book.title}'")

        book.borrowers.append(user)
        book.copies_available -= 1
        await self.db.flush()

    async def _return_once(self, user_id: str, book_id: str) -> None:
        user, book = await self._load(user_id, book_id)
        if user not in book.borrowers:
            raise Conflict(Conflict.NOT_BORROWED_BY_USER, f"You have not borrowed '{book.title}'")

        book.borrowers.remove(user)
        book.copies_available = min(book.total_copies, book.copies_available + 1)
        await self.db.flush()
