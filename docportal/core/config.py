"""
core/config.py
--------------
Centralised settings management using pydantic-settings.
All configuration is loaded from environment variables / .env file.

Settings are built once at process start (see main.create_application) and
handed to components through the AppContext; nothing reads a module-level
settings object.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── App ──────────────────────────────────────────────────────────────
    APP_NAME: str = "Document Portal"
    APP_ENV: str = "development"
    DEBUG: bool = False

    # ── Security ─────────────────────────────────────────────────────────
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    BCRYPT_ROUNDS: int = 10

    # ── Sessions ─────────────────────────────────────────────────────────
    SESSION_COOKIE_NAME: str = "docportal_session"
    SESSION_TTL_SECONDS: int = 8 * 60 * 60
    SESSION_COOKIE_SECURE: bool = False

    # ── Administrator ────────────────────────────────────────────────────
    # With ADMIN_PASSWORD_HASH set the admin is a fixed credential pair;
    # otherwise it is the company row whose login_id equals ADMIN_LOGIN_ID.
    ADMIN_LOGIN_ID: str = "admin@ceasa.com"
    ADMIN_PASSWORD_HASH: Optional[str] = None

    # ── Database ─────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./database.sqlite"

    # ── Object storage (any S3-compatible service) ──────────────────────
    S3_BUCKET: str = "arquivos"
    S3_ENDPOINT_URL: Optional[str] = None
    S3_REGION: str = "us-east-1"
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[str] = None

    # ── Files ────────────────────────────────────────────────────────────
    SIGNED_URL_TTL_SECONDS: int = 3600
    DOWNLOAD_URL_TTL_SECONDS: int = 60
    DEFAULT_CONTENT_TYPE: str = "application/pdf"
    FILE_LISTING_SOURCE: Literal["database", "storage"] = "database"

    # ── Pages ────────────────────────────────────────────────────────────
    LOGIN_PAGE: str = "/login.html"
    TENANT_PAGE: str = "/empresa.html"
    ADMIN_PAGE: str = "/admin.html"
    STATIC_DIR: Optional[str] = None

    # ── CORS ─────────────────────────────────────────────────────────────
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_origins(cls, v):
        if isinstance(v, str):
            import json
            return json.loads(v)
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def check_rounds(cls, v: int) -> int:
        if not 4 <= v <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @property
    def admin_is_fixed_credential(self) -> bool:
        return bool(self.ADMIN_PASSWORD_HASH)


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings factory used by the entry points.
    Use this to avoid re-reading .env on every call.
    """
    return Settings()
