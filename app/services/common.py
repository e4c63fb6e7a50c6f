import uuid
from typing import Optional

from app.core.errors import BadRequestError, NotFoundError


def parse_id(value: str, name: str) -> uuid.UUID:
    """Path ids that are not UUIDs cannot name a row, so they are not found."""
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFoundError(f"{name} not found")


def parse_query_id(value: Optional[str], name: str) -> Optional[uuid.UUID]:
    value = clean(value)
    if value is None:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        raise BadRequestError(f"{name} must be a valid UUID")


def parse_bool(value: Optional[str], name: str) -> Optional[bool]:
    if value is None or value.strip() == "":
        return None
    lowered = value.strip().lower()
    if lowered in ("1", "t", "true"):
        return True
    if lowered in ("0", "f", "false"):
        return False
    raise BadRequestError(f"{name} must be a boolean")


def clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
