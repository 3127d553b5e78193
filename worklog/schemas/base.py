"""Shared pydantic building blocks for the JSON API.

The wire format is camelCase (``startTime``, ``userId`` ...) while the Python
side keeps snake_case attribute names; ``CamelModel`` bridges the two.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..services.timecalc import as_utc

# Datetimes read from SQLite come back naive; they are always UTC.
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageOut(CamelModel):
    message: str


class SuccessOut(CamelModel):
    success: bool = True


__all__ = ["CamelModel", "UtcDatetime", "MessageOut", "SuccessOut"]
