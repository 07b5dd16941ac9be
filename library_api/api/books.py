# library_api/api/books.py
from typing import List

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import crud, database, models, schemas
from ..auth import get_current_admin
from ..models import ID_PATTERN

router = APIRouter(prefix="/books", tags=["📚 Книги"])


@router.post(
    "",
    response_model=schemas.ApiResponse[schemas.BookResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Добавить новую книгу",
    description="""
    Добавляет книгу в каталог.

    **Требования:**
    - `title`: 1–300 символов
    - `author`: идентификатор существующего автора
    - `copies_available`: целое число ≥ 0 (по умолчанию 1)

    **Доступ:** только администратор.
    """
)
async def create_book(
    book: schemas.BookCreate,
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    db_book = await crud.create_book(db, book)
    return schemas.ApiResponse(data=schemas.BookResponse.model_validate(db_book))


@router.get(
    "",
    response_model=schemas.ApiResponse[List[schemas.BookResponse]],
    summary="Получить все книги",
    description="""
    Возвращает каталог книг с данными автора.

    **Фильтры (опционально):**
    - `author`: идентификатор автора
    - `category`: точное совпадение категории
    - `search`: поиск по названию (регистронезависимо)

    **Пример:**
    ```
    GET /api/books?category=Dystopian
    ```
    """
)
async def read_books(
    author: str = Query(None, pattern=ID_PATTERN, description="Идентификатор автора"),
    category: str = Query(None, max_length=100, description="Категория"),
    search: str = Query(None, description="Поиск по названию"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(database.get_db),
):
    books = await crud.get_books(db, author=author, category=category, search=search, skip=skip, limit=limit)
    return schemas.ApiResponse(data=[schemas.BookResponse.model_validate(book) for book in books])


@router.get(
    "/{book_id}",
    response_model=schemas.ApiResponse[schemas.BookResponse],
    summary="Получить книгу",
    description="Возвращает книгу по идентификатору вместе с автором и списком читателей."
)
async def read_book(
    book_id: str = Path(..., pattern=ID_PATTERN),
    db: AsyncSession = Depends(database.get_db),
):
    book = await crud.get_book_or_404(db, book_id)
    return schemas.ApiResponse(data=schemas.BookResponse.model_validate(book))


@router.put(
    "/{book_id}",
    response_model=schemas.ApiResponse[schemas.BookResponse],
    summary="Обновить информацию о книге",
    description="""
    Частичное обновление книги.

    **Тело запроса:** любые из полей `title`, `author`, `description`,
    `category`, `copies_available` (хотя бы одно).

    При изменении `copies_available` общее число экземпляров
    пересчитывается с учётом уже выданных.

    **Доступ:** только администратор.
    """
)
async def update_book(
    book_update: schemas.BookUpdate,
    book_id: str = Path(..., pattern=ID_PATTERN),
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    book = await crud.get_book_or_404(db, book_id)
    book = await crud.update_book(db, book, book_update)
    return schemas.ApiResponse(data=schemas.BookResponse.model_validate(book))


@router.delete(
    "/{book_id}",
    response_model=schemas.ApiResponse,
    summary="Удалить книгу",
    description="""
    Удаляет книгу из каталога; у читателей она исчезает из списка взятых.

    **Доступ:** только администратор.
    """
)
async def delete_book(
    book_id: str = Path(..., pattern=ID_PATTERN),
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    book = await crud.get_book_or_404(db, book_id)
    await crud.delete_book(db, book)
    return schemas.ApiResponse(message="Book deleted")
