import os
from datetime import timedelta

DEFAULT_DATABASE_URL = "sqlite:///hrms.db"


def _env_number(name: str, default, cast):
    text = (os.getenv(name) or "").strip()
    if not text:
        return default
    try:
        return cast(text)
    except ValueError:
        return default


def _normalize_db_url(url: str | None) -> str:
    url = (url or "").strip()
    if not url:
        return DEFAULT_DATABASE_URL
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def current_database_url() -> str:
    return _normalize_db_url(os.getenv("DATABASE_URL"))


class Config:
    SQLALCHEMY_DATABASE_URI = current_database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=10)
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")
    RESEND_API_KEY = os.getenv("RESEND_API_KEY", "").strip()
    RESEND_DEFAULT_SENDER = os.getenv("RESEND_DEFAULT_SENDER", "HRMS <no-reply@hrms.local>")
    RESEND_TIMEOUT = _env_number("RESEND_TIMEOUT", 15.0, float)
    PASSWORD_RESET_TOKEN_HOURS = _env_number("PASSWORD_RESET_TOKEN_HOURS", 1, int)
    PAYROLL_MONTH_DAYS = _env_number("PAYROLL_MONTH_DAYS", 30, int)
    PAYROLL_PAID_LEAVE_DAYS = _env_number("PAYROLL_PAID_LEAVE_DAYS", 1, int)
    DEFAULT_PAGE_SIZE = _env_number("DEFAULT_PAGE_SIZE", 10, int)
