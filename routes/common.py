"""Request helpers shared by the API blueprints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TypeVar

from flask import current_app, request
from flask_jwt_extended import get_jwt

from models import ADMIN_ROLES, RoleEnum, User

E = TypeVar("E", bound=Enum)

MAX_PAGE_SIZE = 100


def require_role(*roles):
    claims = get_jwt()
    try:
        current_role = RoleEnum(claims.get("role"))
    except (ValueError, TypeError):
        return False
    return current_role in roles


def is_admin() -> bool:
    return require_role(*ADMIN_ROLES)


def current_user_id() -> int | None:
    try:
        return int(get_jwt().get("sub"))
    except (TypeError, ValueError):
        return None


def current_user() -> User | None:
    user_id = current_user_id()
    if user_id is None:
        return None
    return User.query.get(user_id)


def clean_string(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def extract_string(value, *, label: str, required: bool = False, max_length: int | None = None) -> str | None:
    text_value = clean_string(value)
    if not text_value:
        if required:
            raise ValueError(f"{label} is required.")
        return None
    if max_length is not None and len(text_value) > max_length:
        raise ValueError(f"{label} must be at most {max_length} characters.")
    return text_value


def parse_iso_date(value, *, label: str = "Date", required: bool = True) -> date | None:
    """Parse YYYY-MM-DD strings (a trailing time part is ignored)."""

    text_value = clean_string(value)
    if not text_value:
        if required:
            raise ValueError(f"{label} is required in YYYY-MM-DD format.")
        return None

    try:
        return date.fromisoformat(text_value[:10])
    except ValueError as exc:
        raise ValueError(f"{label} must be in YYYY-MM-DD format.") from exc


def normalize_bool(value, *, label: str) -> bool:
    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes", "y"}:
            return True
        if normalized in {"false", "0", "no", "n"}:
            return False

    if isinstance(value, int) and value in (0, 1):
        return bool(value)

    raise ValueError(f"{label} must be true or false.")


def parse_enum(enum_cls: type[E], value, *, label: str, default: E | None = None) -> E:
    text_value = clean_string(value)
    if not text_value:
        if default is not None:
            return default
        raise ValueError(f"{label} is required.")

    lowered = text_value.lower()
    for member in enum_cls:
        if member.value.lower() == lowered or member.name.lower() == lowered:
            return member

    allowed = ", ".join(member.value for member in enum_cls)
    raise ValueError(f"{label} must be one of: {allowed}.")


def parse_amount(value, *, label: str = "Amount") -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a number.")
    if isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        text_value = clean_string(value).replace(",", "")
        if not text_value:
            raise ValueError(f"{label} is required.")
        try:
            amount = Decimal(text_value)
        except InvalidOperation as exc:
            raise ValueError(f"{label} must be a number.") from exc

    if not amount.is_finite():
        raise ValueError(f"{label} must be a number.")
    if amount < 0:
        raise ValueError(f"{label} cannot be negative.")
    return amount.quantize(Decimal("0.01"))


def parse_int(value, *, min_value: int | None = None) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    if min_value is not None and number < min_value:
        return None
    return number


def paginate(query, *, default_limit: int | None = None) -> tuple[list, dict]:
    """Apply ``page``/``limit`` query parameters to ``query``.

    Returns the page of items and the pagination metadata the client expects.
    """

    fallback = default_limit or current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    page = parse_int(request.args.get("page"), min_value=1) or 1
    limit = parse_int(request.args.get("limit"), min_value=1) or fallback
    limit = min(limit, MAX_PAGE_SIZE)

    total_items = query.order_by(None).count()
    total_pages = max((total_items + limit - 1) // limit, 1)
    if page > total_pages:
        page = total_pages

    items = query.limit(limit).offset((page - 1) * limit).all()
    return items, {
        "totalItems": total_items,
        "totalPages": total_pages,
        "currentPage": page,
    }
