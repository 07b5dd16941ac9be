# library_api/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import auth, authors, books, users
from .config import Settings
from .database import Database
from .errors import LibraryError, ValidationFailed
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def _error_body(status_code: int, error: str, message: str, **extra) -> dict:
    body = {"success": False, "status": status_code, "error": error, "message": message}
    body.update(extra)
    return body


def _field_name(loc) -> str:
    # ("body", "email") -> "email"; a body that failed as a whole -> "body"
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or (str(loc[0]) if loc else "body")


async def library_error_handler(request: Request, exc: LibraryError):
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    content = _error_body(exc.status_code, exc.code, exc.message)
    errors = getattr(exc, "errors", None)
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [{"field": _field_name(err.get("loc", ())), "message": err.get("msg", "")} for err in exc.errors()]
    return await library_error_handler(request, ValidationFailed(errors))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and request.url.path.startswith("/api"):
        message = "API endpoint not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, "HTTPError", message),
        headers=getattr(exc, "headers", None),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings.log_level, settings.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.database_url, echo=settings.echo_sql, timeout=settings.store_timeout)
        try:
            await db.create_all()
        except OperationalError:
            logger.critical("Could not initialise the database at %s", settings.database_url)
            await db.dispose()
            raise
        app.state.db = db
        logger.info("%s %s started", settings.project_name, settings.api_version)
        yield
        await db.dispose()
        logger.info("%s stopped", settings.project_name)

    app = FastAPI(
        title=settings.project_name,
        description="Library REST API: users, authors, books and a borrow/return workflow with JWT auth.",
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_exception_handler(LibraryError, library_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # ПОДКЛЮЧАЕМ РОУТЕРЫ
    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(authors.router, prefix="/api")
    app.include_router(books.router, prefix="/api")

    @app.get("/health", tags=["⚙️ Служебное"], summary="Проверка состояния")
    async def health():
        return {"success": True, "data": {"status": "ok", "version": settings.api_version}}

    return app


app = create_app()


def run():
    import uvicorn

    settings = app.state.settings
    uvicorn.run("library_api.main:app", host=settings.host, port=settings.port)
