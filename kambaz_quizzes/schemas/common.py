"""Shared / generic schemas."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope returned by every domain error handler."""

    success: bool = False
    error_code: str
    message: str
    details: dict[str, Any] | None = None


class LabelEnum(str, Enum):
    """String enum that also accepts display labels such as "Graded Quiz" or "NEVER"."""

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-").replace(" ", "-")
            for member in cls:
                if member.value == key:
                    return member
        return None


def as_utc(value: datetime | None) -> datetime | None:
    """Interpret naive datetimes (e.g. read back from SQLite) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
