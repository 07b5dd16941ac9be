# library_api/api/users.py
from typing import List

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import crud, database, models, schemas
from ..auth import get_current_admin, get_current_user, get_settings
from ..config import Settings
from ..lending import LendingService
from ..models import ID_PATTERN

router = APIRouter(prefix="/users", tags=["👤 Пользователи"])


def get_lending_service(
    db: AsyncSession = Depends(database.get_db),
    settings: Settings = Depends(get_settings),
) -> LendingService:
    return LendingService(db, settings)


# /me routes come first so "me" is never matched as a user id.

@router.get(
    "/me",
    response_model=schemas.ApiResponse[schemas.UserResponse],
    summary="Мой профиль",
    description="Возвращает профиль текущего пользователя вместе с идентификаторами взятых книг."
)
async def read_me(current_user: models.User = Depends(get_current_user)):
    return schemas.ApiResponse(data=schemas.UserResponse.model_validate(current_user))


@router.put(
    "/me",
    response_model=schemas.ApiResponse[schemas.UserResponse],
    summary="Обновить мой профиль",
    description="""
    Частичное обновление профиля: передаются только изменяемые поля.

    **Ограничения:**
    - хотя бы одно поле
    - роль через этот запрос не меняется
    - новый пароль хэшируется заново
    """
)
async def update_me(
    user_update: schemas.UserSelfUpdate,
    db: AsyncSession = Depends(database.get_db),
    current_user: models.User = Depends(get_current_user),
):
    user = await crud.update_user(db, current_user, user_update)
    return schemas.ApiResponse(data=schemas.UserResponse.model_validate(user))


@router.post(
    "/me/borrow/{book_id}",
    response_model=schemas.ApiResponse[schemas.BookResponse],
    summary="Взять книгу",
    description="""
    Выдаёт один экземпляр книги текущему пользователю.

    **Ошибки:**
    - `404`: книга не найдена
    - `409 NoCopiesAvailable`: свободных экземпляров нет
    - `409 AlreadyBorrowed`: книга уже у пользователя
    - `503`: хранилище не ответило, запрос можно повторить
    """
)
async def borrow_book(
    book_id: str = Path(..., pattern=ID_PATTERN),
    current_user: models.User = Depends(get_current_user),
    lending: LendingService = Depends(get_lending_service),
):
    book = await lending.borrow(current_user.id, book_id)
    return schemas.ApiResponse(
        data=schemas.BookResponse.model_validate(book),
        message=f"Book '{book.title}' borrowed successfully",
    )


@router.post(
    "/me/return/{book_id}",
    response_model=schemas.ApiResponse[schemas.BookResponse],
    summary="Вернуть книгу",
    description="""
    Возвращает взятый экземпляр книги.

    **Ошибки:**
    - `404`: книга не найдена
    - `409 NotBorrowedByUser`: пользователь эту книгу не брал
    """
)
async def return_book(
    book_id: str = Path(..., pattern=ID_PATTERN),
    current_user: models.User = Depends(get_current_user),
    lending: LendingService = Depends(get_lending_service),
):
    book = await lending.return_book(current_user.id, book_id)
    return schemas.ApiResponse(
        data=schemas.BookResponse.model_validate(book),
        message=f"Book '{book.title}' returned successfully",
    )


@router.get(
    "/me/books",
    response_model=schemas.ApiResponse[List[schemas.BookResponse]],
    summary="Мои книги",
    description="Список книг, которые сейчас находятся у текущего пользователя."
)
async def read_my_books(
    current_user: models.User = Depends(get_current_user),
    lending: LendingService = Depends(get_lending_service),
):
    books = await lending.list_borrowed(current_user.id)
    return schemas.ApiResponse(data=[schemas.BookResponse.model_validate(book) for book in books])


# --- Administration ------------------------------------------------------

@router.post(
    "",
    response_model=schemas.ApiResponse[schemas.UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Создать пользователя",
    description="Создаёт пользователя с указанной ролью. **Доступ:** только администратор."
)
async def create_user(
    user: schemas.UserCreate,
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    db_user = await crud.create_user(db, user)
    return schemas.ApiResponse(data=schemas.UserResponse.model_validate(db_user))


@router.get(
    "",
    response_model=schemas.ApiResponse[List[schemas.UserResponse]],
    summary="Список пользователей",
    description="**Доступ:** только администратор."
)
async def read_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    users = await crud.list_users(db, skip=skip, limit=limit)
    return schemas.ApiResponse(data=[schemas.UserResponse.model_validate(user) for user in users])


@router.get(
    "/{user_id}",
    response_model=schemas.ApiResponse[schemas.UserResponse],
    summary="Получить пользователя",
    description="**Доступ:** только администратор."
)
async def read_user(
    user_id: str = Path(..., pattern=ID_PATTERN),
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    user = await crud.get_user_or_404(db, user_id)
    return schemas.ApiResponse(data=schemas.UserResponse.model_validate(user))


@router.put(
    "/{user_id}",
    response_model=schemas.ApiResponse[schemas.UserResponse],
    summary="Обновить пользователя",
    description="""
    Частичное обновление пользователя, включая роль.

    **Доступ:** только администратор.
    """
)
async def update_user(
    user_update: schemas.UserUpdate,
    user_id: str = Path(..., pattern=ID_PATTERN),
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    user = await crud.get_user_or_404(db, user_id)
    user = await crud.update_user(db, user, user_update)
    return schemas.ApiResponse(data=schemas.UserResponse.model_validate(user))


@router.delete(
    "/{user_id}",
    response_model=schemas.ApiResponse,
    summary="Удалить пользователя",
    description="""
    Удаляет пользователя. Все взятые им книги предварительно
    возвращаются в библиотеку.

    **Доступ:** только администратор.
    """
)
async def delete_user(
    user_id: str = Path(..., pattern=ID_PATTERN),
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
    lending: LendingService = Depends(get_lending_service),
):
    user = await crud.get_user_or_404(db, user_id)
    await lending.release_all(user)
    await crud.delete_user(db, user)
    return schemas.ApiResponse(message="User deleted")
