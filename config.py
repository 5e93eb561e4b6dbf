import os
import secrets
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional, Tuple

from dotenv import load_dotenv

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

DEFAULT_CORS_ORIGINS = ("https://rohan-keenoy.web.app", "http://localhost:3000")
DEFAULT_AUTHOR = "Rohan"
POSTS_PER_PAGE = 5


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        return "sqlite:///" + os.path.join(BASE_DIR, "blog.db")
    # Hosted Postgres hands out postgres://, SQLAlchemy wants postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


@dataclass(frozen=True)
class Settings:
    """Process configuration, read once at startup and passed around by reference."""

    database_url: str = "sqlite://"
    port: int = 5000
    secret_key: str = field(default_factory=lambda: secrets.token_hex(32))

    # Single admin identity
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    # Outbound mail
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_timeout: float = 30.0
    recipient_email: Optional[str] = None

    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    upload_folder: str = os.path.join(BASE_DIR, "uploads")
    max_content_length: int = 25 * 1024 * 1024  # 25 MB

    page_size: int = POSTS_PER_PAGE
    default_author: str = DEFAULT_AUTHOR
    protect_post_creation: bool = False
    session_lifetime: timedelta = timedelta(days=14)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_path: Optional[str] = None) -> "Settings":
        # Use .env only if present (local dev); hosted deployments set real env vars.
        env_path = env_path or os.path.join(BASE_DIR, ".env")
        if os.path.exists(env_path):
            load_dotenv(env_path)

        origins = os.getenv("CORS_ORIGINS")
        upload_folder = os.getenv("UPLOAD_FOLDER", "uploads")
        if not os.path.isabs(upload_folder):
            upload_folder = os.path.join(BASE_DIR, upload_folder)

        return cls(
            database_url=_database_url(),
            port=_env_int("PORT", 5000),
            secret_key=os.getenv("SECRET_KEY") or secrets.token_hex(32),
            admin_email=os.getenv("EMAIL"),
            admin_password=os.getenv("PASSWORD"),
            smtp_host=os.getenv("EMAIL_HOST", "localhost"),
            smtp_port=_env_int("EMAIL_PORT", 587),
            smtp_user=os.getenv("EMAIL_USER"),
            smtp_password=os.getenv("EMAIL_PASS"),
            recipient_email=os.getenv("RECIPIENT_EMAIL"),
            cors_origins=(
                tuple(o.strip() for o in origins.split(",") if o.strip())
                if origins
                else DEFAULT_CORS_ORIGINS
            ),
            upload_folder=upload_folder,
            protect_post_creation=_env_bool("REQUIRE_ADMIN_FOR_POSTS"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def to_flask_config(self) -> dict:
        return {
            "SECRET_KEY": self.secret_key,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "UPLOAD_FOLDER": self.upload_folder,
            "MAX_CONTENT_LENGTH": self.max_content_length,
            "PERMANENT_SESSION_LIFETIME": self.session_lifetime,
        }
