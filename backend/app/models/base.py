"""
Shared column helpers for the document models.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Enum


def new_id() -> str:
    """Server-generated identifier (UUID4, canonical string form)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_column(enum_cls, name: str) -> Enum:
    """Store enum values (``"rider_assigned"``) rather than member names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
