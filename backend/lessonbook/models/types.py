# backend/lessonbook/models/types.py
"""
Custom SQLAlchemy types that work across different database backends.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import Column, DateTime, Integer, TypeDecorator
from sqlalchemy.sql import func

from ..domain.time_of_day import TimeOfDay

if TYPE_CHECKING:
    from sqlalchemy.sql.type_api import TypeDecorator as _TypeDecorator

    TypeDecoratorProtocol = _TypeDecorator[Any]
else:
    TypeDecoratorProtocol = TypeDecorator


class UTCDateTime(TypeDecoratorProtocol):
    """
    Timezone-aware instant stored in UTC.

    PostgreSQL keeps ``timestamptz``. SQLite has no timezone support, so values
    are written as naive UTC and re-attached to UTC when read, which keeps
    textual comparison in SQLite triggers consistent.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class TimeOfDayType(TypeDecoratorProtocol):
    """Stores a :class:`TimeOfDay` as integer minutes past midnight."""

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Optional[int]:
        if value is None:
            return None
        if isinstance(value, str):
            value = TimeOfDay.parse(value)
        if isinstance(value, TimeOfDay):
            return value.minutes
        return int(value)

    def process_result_value(self, value: Optional[int], dialect: Any) -> Optional[TimeOfDay]:
        if value is None:
            return None
        return TimeOfDay(int(value))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Mixin class for automatic timestamp tracking."""

    created_at = Column(UTCDateTime(), default=utc_now, server_default=func.now(), nullable=False)
    updated_at = Column(UTCDateTime(), default=utc_now, onupdate=utc_now, nullable=True)
