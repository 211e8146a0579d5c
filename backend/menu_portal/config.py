# menu_portal/config.py
import os
from pydantic_settings import BaseSettings

# Get the backend directory (holds the package and the optional .env file)
_BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

class Settings(BaseSettings):
    # App Config
    APP_NAME: str = "Menu Portal"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    # Storage: one directory per submission lives under DATA_DIR
    DATA_DIR: str = os.path.join(_BASE_DIR, "data")
    SQLITE_DB_FILE: str | None = None

    @property
    def DATABASE_FILE(self) -> str:
        return self.SQLITE_DB_FILE or os.path.join(self.DATA_DIR, "submissions.db")

    @property
    def DATABASE_URL(self) -> str:
        db_file = self.DATABASE_FILE
        # check_same_thread is only needed for SQLite (FastAPI runs sync routes in a threadpool)
        return f"sqlite:///{db_file}?check_same_thread=False"

    # Retention
    RETENTION_HOURS: int = 72
    CLEANUP_INTERVAL_SECONDS: int = 3600

    # Admin shared secret. Admin routes are disabled while this is unset.
    ADMIN_TOKEN: str | None = None
    ADMIN_LIST_LIMIT: int = 20

    # Public base URL used for links sent by email
    APP_BASE_URL: str = "http://localhost:8000"

    # Outbound email (notifications are skipped when these are missing)
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    MAIL_FROM: str = "Menu Portal <no-reply@menu-portal.local>"
    NOTIFY_EMAIL_TO: str | None = None

    # File Uploads
    MAX_FILE_SIZE: int = 1024 * 1024 * 20  # 20 MB
    MAX_IMAGES_PER_UPLOAD: int = 50
    MAX_DOCS_PER_TYPE: int = 3

    # Product images smaller than this (either side) are rejected in strict mode,
    # and only produce a warning otherwise. Logos always just warn.
    MIN_IMAGE_DIMENSION: int = 1000
    STRICT_IMAGE_DIMENSIONS: bool = True

    # Rate limiting for submission creation
    RATE_LIMIT_ENABLED: bool = True
    CREATE_RATE_LIMIT: str = "20/minute"

    class Config:
        env_file = os.path.join(_BASE_DIR, ".env")

settings = Settings()

def get_settings() -> Settings:
    """FastAPI dependency so routes receive the settings object instead of importing it."""
    return settings
