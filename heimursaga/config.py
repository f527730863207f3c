"""
Heimursaga – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──
    APP_NAME: str = "Heimursaga"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./heimursaga.db"
    # Seconds a SQLite connection waits for the write lock
    DATABASE_LOCK_TIMEOUT: float = 15.0

    # ── JWT ──
    SECRET_KEY: str = "change-me-to-a-random-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ── Entries ──
    ENTRIES_PAGE_LIMIT: int = 500
    DRAFTS_PAGE_LIMIT: int = 20

    # Extra attempts for a like/bookmark toggle that lost a write conflict
    TOGGLE_RETRY_ATTEMPTS: int = 1


settings = Settings()
