"""
Declarative base and shared model helpers
"""
from datetime import datetime, timezone

from sqlalchemy import Enum, event
from sqlalchemy.orm import declarative_base

from app.core.exceptions import ImmutableRecordError

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def append_only(cls):
    """Class decorator: reject UPDATE and DELETE of persisted rows."""

    def _reject(mapper, connection, target):
        raise ImmutableRecordError(type(target).__name__)

    event.listen(cls, "before_update", _reject)
    event.listen(cls, "before_delete", _reject)
    return cls


def wire_enum(enum_cls, name: str) -> Enum:
    """Enum column type storing member values (the wire constants), not names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
