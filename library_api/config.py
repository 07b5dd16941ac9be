# library_api/config.py
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings read from environment variables.

    Values are resolved when an instance is created, so tests can build
    their own ``Settings(database_url=...)`` without touching the
    environment.
    """

    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "Library Lending API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "1.0.0"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", ""))

    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./library.db"))
    echo_sql: bool = field(default_factory=lambda: _env_bool("ECHO_SQL"))

    secret_key: str = field(default_factory=lambda: os.getenv("JWT_SECRET", "change-me-in-production"))
    algorithm: str = field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256"))
    access_token_expire_days: int = field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "5")))
    cookie_name: str = field(default_factory=lambda: os.getenv("COOKIE_NAME", "token"))
    cookie_secure: bool = field(default_factory=lambda: _env_bool("COOKIE_SECURE"))

    # Upper bound, in seconds, for a single lending transition and for
    # SQLite's busy wait.
    store_timeout: float = field(default_factory=lambda: float(os.getenv("STORE_TIMEOUT", "10")))
    lending_max_attempts: int = field(default_factory=lambda: int(os.getenv("LENDING_MAX_ATTEMPTS", "5")))

    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))

    @property
    def access_token_max_age(self) -> int:
        return self.access_token_expire_days * 24 * 60 * 60
