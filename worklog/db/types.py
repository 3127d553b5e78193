from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from ..services.timecalc import as_utc


class UtcDateTime(TypeDecorator):
    """DateTime column that only ever stores and returns aware UTC values.

    SQLite has no timezone support: offsets would be silently dropped on write
    and values come back naive. Converting on the way in and re-attaching UTC
    on the way out keeps ordering and day bucketing correct on every backend.
    """

    impl = DateTime
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(timezone=True)

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        return as_utc(value)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        return as_utc(value)
