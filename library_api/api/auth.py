# library_api/api/auth.py
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import auth, crud, database, schemas
from ..config import Settings
from ..errors import Unauthorized

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["🔐 Аутентификация"])


def _token_payload(user, token: str) -> schemas.AuthToken:
    return schemas.AuthToken(id=user.id, name=user.name, email=user.email, access_token=token)


@router.post(
    "/register",
    response_model=schemas.ApiResponse[schemas.AuthToken],
    status_code=status.HTTP_201_CREATED,
    summary="Регистрация нового пользователя",
    description="""
    Создаёт аккаунт с ролью `ordinary` и сразу выдаёт JWT-токен.

    **Требования к данным:**
    - `first_name`, `last_name`: от 2 до 100 символов
    - `email`: корректный адрес, уникальный
    - `password`: от 6 до 72 символов

    **Ответ:** данные пользователя и `access_token`; токен также
    устанавливается в HTTP-only cookie `token`.
    """
)
async def register(
    user: schemas.UserRegister,
    response: Response,
    db: AsyncSession = Depends(database.get_db),
    settings: Settings = Depends(auth.get_settings),
):
    db_user = await crud.create_user(db, user)
    token = auth.create_access_token(db_user.id, settings)
    auth.set_auth_cookie(response, token, settings)
    logger.info("Registered user %s", db_user.email)
    return schemas.ApiResponse(data=_token_payload(db_user, token), message="User registered")


@router.post(
    "/login",
    response_model=schemas.ApiResponse[schemas.AuthToken],
    summary="Вход в систему",
    description="""
    Аутентифицирует пользователя по email и паролю и выдаёт JWT-токен.

    **Использование токена:**
    - заголовок `Authorization: Bearer <токен>`
    - или cookie `token`, которую устанавливает этот запрос

    **Срок действия токена:** `ACCESS_TOKEN_EXPIRE_DAYS` дней (по умолчанию 5).
    """
)
async def login(
    credentials: schemas.UserLogin,
    response: Response,
    db: AsyncSession = Depends(database.get_db),
    settings: Settings = Depends(auth.get_settings),
):
    user = await auth.authenticate_user(db, credentials.email, credentials.password)
    if not user:
        logger.info("Failed login for %s", credentials.email)
        raise Unauthorized("Invalid credentials")
    token = auth.create_access_token(user.id, settings)
    auth.set_auth_cookie(response, token, settings)
    logger.info("User %s logged in", user.id)
    return schemas.ApiResponse(data=_token_payload(user, token), message="Login successful")


@router.post(
    "/logout",
    response_model=schemas.ApiResponse,
    summary="Выход из системы",
    description="""
    Удаляет cookie с токеном. Выданные ранее токены остаются
    действительными до истечения срока.
    """
)
async def logout(response: Response, settings: Settings = Depends(auth.get_settings)):
    auth.clear_auth_cookie(response, settings)
    return schemas.ApiResponse(message="Logged out successfully")
