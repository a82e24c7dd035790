"""Application configuration from environment."""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_SECRET_KEY = "change-me-in-production-use-env"


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Course File Server"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Database
    database_url: str = "sqlite+aiosqlite:///./file_server.db"

    # JWT
    secret_key: str = DEFAULT_SECRET_KEY
    algorithm: str = "HS256"
    access_token_expire_hours: int = 24

    # Uploads
    public_dir: Path = Path("public")
    temp_dir_name: str = "temp"
    # staged files older than this are removed at startup
    staging_grace_seconds: int = 60 * 60
    max_upload_bytes: int = 10 * 1024 * 1024  # 10 MiB
    allowed_mime_types: list[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
        "application/zip",
        "application/x-rar-compressed",
        "video/mp4",
        "audio/mpeg",
    ]
    upload_requires_auth: bool = False

    # HTTP
    api_prefix: str = "/api"
    cors_origins: list[str] = ["*"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @field_validator("secret_key")
    @classmethod
    def _secret_not_empty(cls, value: str) -> str:
        # an empty HMAC key makes every token forgeable
        if not value or not value.strip():
            raise ValueError("secret_key must not be empty")
        return value

    @field_validator("port", "max_upload_bytes", "access_token_expire_hours")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @property
    def temp_dir(self) -> Path:
        return self.public_dir / self.temp_dir_name


def get_settings() -> Settings:
    return Settings()


# app/ package directory (templates live under it)
APP_DIR = Path(__file__).resolve().parent.parent
