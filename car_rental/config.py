import os

from dotenv import load_dotenv

load_dotenv()


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application settings, read from the environment (or a .env file)."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    # SQLite or PostgreSQL only: both enforce the partial unique index on active rentals
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///car_rental.db")
    SQL_ECHO = _bool_env("SQL_ECHO")
    # season applied to new rentals until an admin changes it
    DEFAULT_SEASON = os.getenv("DEFAULT_SEASON", "BASE")
    DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "Asia/Seoul")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # login id that gets the admin role on signup
    ADMIN_LOGIN_ID = os.getenv("ADMIN_LOGIN_ID", "admin")
