import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str
    log_path: str
    app_url: str
    allowed_email_domain: Optional[str]
    draw_max_attempts: int
    draw_minimize_reciprocals: bool


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    database_url = os.getenv("DATABASE_URL")
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_path = os.getenv("LOG_PATH", "logs/secret_santa.log")
    app_url = os.getenv("APP_URL", "http://localhost:3000").rstrip("/")
    allowed_email_domain = os.getenv("ALLOWED_EMAIL_DOMAIN") or None

    if not database_url:
        raise ValueError("DATABASE_URL is required. Set it in the environment or .env file.")

    try:
        draw_max_attempts = int(os.getenv("DRAW_MAX_ATTEMPTS", "100"))
    except ValueError as exc:
        raise ValueError("DRAW_MAX_ATTEMPTS must be an integer.") from exc
    if draw_max_attempts < 1:
        raise ValueError("DRAW_MAX_ATTEMPTS must be at least 1.")

    return Settings(
        database_url=database_url,
        log_level=log_level,
        log_path=log_path,
        app_url=app_url,
        allowed_email_domain=allowed_email_domain.lower() if allowed_email_domain else None,
        draw_max_attempts=draw_max_attempts,
        draw_minimize_reciprocals=_env_flag("DRAW_MINIMIZE_RECIPROCALS", True),
    )
