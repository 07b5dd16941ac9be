# library_api/auth.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from . import models, database
from .config import Settings
from .errors import Forbidden, Unauthorized

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def hash_password(password: str) -> str:
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(
        plain_password.encode('utf-8')[:72],
        hashed_password.encode('utf-8')
    )


def create_access_token(user_id: str, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.access_token_expire_days))
    to_encode = {"sub": user_id, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> Optional[str]:
    """Return the user id carried by ``token``, or None if it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    return payload.get("sub")


def set_auth_cookie(response: Response, token: str, settings: Settings):
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.access_token_max_age,
        path="/"
    )


def clear_auth_cookie(response: Response, settings: Settings):
    response.delete_cookie(settings.cookie_name, path="/", httponly=True)


async def authenticate_user(db: AsyncSession, email: str, password: str) -> Optional[models.User]:
    from . import crud

    user = await crud.get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(database.get_db),
    settings: Settings = Depends(get_settings),
) -> models.User:
    """Resolve the bearer header (or the auth cookie) to a stored user."""
    from . import crud

    token = credentials.credentials if credentials else request.cookies.get(settings.cookie_name)
    if not token:
        raise Unauthorized("Not authorized, no token")

    user_id = decode_access_token(token, settings)
    if user_id is None:
        raise Unauthorized("Not authorized, token failed")

    user = await crud.get_user(db, user_id)
    if user is None:
        raise Unauthorized("User not found")
    request.state.user = user
    return user


async def get_current_admin(current_user: models.User = Depends(get_current_user)) -> models.User:
    if not current_user.is_admin:
        logger.info("User %s denied administrator access", current_user.id)
        raise Forbidden("Not authorized as admin")
    return current_user
