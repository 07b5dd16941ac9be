# library_api/api/authors.py
from typing import List

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import crud, database, models, schemas
from ..auth import get_current_admin
from ..models import ID_PATTERN

router = APIRouter(prefix="/authors", tags=["✍️ Авторы"])


@router.post(
    "",
    response_model=schemas.ApiResponse[schemas.AuthorResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Добавить автора",
    description="""
    Создаёт автора. В поле `books` можно сразу перечислить
    идентификаторы существующих книг: они будут закреплены за ним.

    **Доступ:** только администратор.
    """
)
async def create_author(
    author: schemas.AuthorCreate,
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    db_author = await crud.create_author(db, author)
    return schemas.ApiResponse(data=schemas.AuthorResponse.model_validate(db_author))


@router.get(
    "",
    response_model=schemas.ApiResponse[List[schemas.AuthorResponse]],
    summary="Получить всех авторов",
    description="Список авторов с их книгами. Параметр `search` ищет по имени."
)
async def read_authors(
    search: str = Query(None, description="Поиск по имени"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(database.get_db),
):
    authors = await crud.list_authors(db, skip=skip, limit=limit, search=search)
    return schemas.ApiResponse(data=[schemas.AuthorResponse.model_validate(author) for author in authors])


@router.get(
    "/{author_id}",
    response_model=schemas.ApiResponse[schemas.AuthorResponse],
    summary="Получить автора"
)
async def read_author(
    author_id: str = Path(..., pattern=ID_PATTERN),
    db: AsyncSession = Depends(database.get_db),
):
    author = await crud.get_author_or_404(db, author_id)
    return schemas.ApiResponse(data=schemas.AuthorResponse.model_validate(author))


@router.put(
    "/{author_id}",
    response_model=schemas.ApiResponse[schemas.AuthorResponse],
    summary="Обновить автора",
    description="Частичное обновление (хотя бы одно поле). **Доступ:** только администратор."
)
async def update_author(
    author_update: schemas.AuthorUpdate,
    author_id: str = Path(..., pattern=ID_PATTERN),
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    author = await crud.get_author_or_404(db, author_id)
    author = await crud.update_author(db, author, author_update)
    return schemas.ApiResponse(data=schemas.AuthorResponse.model_validate(author))


@router.delete(
    "/{author_id}",
    response_model=schemas.ApiResponse,
    summary="Удалить автора",
    description="""
    Удаляет автора без книг. Если в каталоге остались его книги,
    возвращается `409 AuthorHasBooks`.

    **Доступ:** только администратор.
    """
)
async def delete_author(
    author_id: str = Path(..., pattern=ID_PATTERN),
    db: AsyncSession = Depends(database.get_db),
    admin: models.User = Depends(get_current_admin),
):
    author = await crud.get_author_or_404(db, author_id)
    await crud.delete_author(db, author)
    return schemas.ApiResponse(message="Author deleted")
