import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

DEFAULT_JWT_SECRET = "change-me-in-production"
AUTH_COOKIE_NAME = "access_token"
API_VERSION = "v1"


def _bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    host = os.getenv("DB_HOST")
    if host:
        user = os.getenv("DB_USER", "postgres")
        password = os.getenv("DB_PASSWORD", "")
        name = os.getenv("DB_NAME", "mybooks")
        port = os.getenv("DB_PORT", "5432")
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"
    return "sqlite:///./mybooks.db"


@dataclass
class Settings:
    database_url: str = "sqlite:///./mybooks.db"
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_expires_hours: int = 24 * 7
    host: str = "0.0.0.0"
    port: int = 8080
    app_url: str = "http://localhost:3000"
    resend_api_key: str = ""
    email_from: str = "MyBooks <no-reply@mybooks.local>"
    email_reply_to: str = ""
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    cookie_secure: bool = False
    log_level: str = "INFO"
    reset_token_ttl_minutes: int = 60

    @classmethod
    def from_env(cls) -> "Settings":
        # .env is optional; real environment variables take precedence
        load_dotenv()
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=_database_url(),
            jwt_secret=os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET),
            jwt_expires_hours=int(os.getenv("JWT_EXPIRES_HOURS", 24 * 7)),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", 8080)),
            app_url=os.getenv("APP_URL", "http://localhost:3000").rstrip("/"),
            resend_api_key=os.getenv("RESEND_API_KEY", ""),
            email_from=os.getenv("EMAIL_FROM", "MyBooks <no-reply@mybooks.local>"),
            email_reply_to=os.getenv("EMAIL_REPLY_TO", ""),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            cookie_secure=_bool(os.getenv("COOKIE_SECURE", "false")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            reset_token_ttl_minutes=int(os.getenv("RESET_TOKEN_TTL_MINUTES", 60)),
        )
