"""Shared pydantic helpers for request schemas."""

import base64
from datetime import datetime, timezone


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with the engine clock."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def require_non_blank(value: str) -> str:
    if not value or value != value.strip():
        raise ValueError("must be non-empty without surrounding whitespace")
    return value


def sealed_to_str(sealed: bytes) -> str:
    return base64.b64encode(sealed).decode()
