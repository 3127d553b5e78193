"""JSON logging for the service.

Every line carries the request id and principal of the request that produced
it. Timer events (``session.started`` / ``session.stopped``) always carry the
same set of ledger keys, null when not applicable, so log queries can filter
on them without checking for presence first.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var
from ..services.timecalc import as_utc, utcnow
from .config import settings

SESSION_EVENT_PREFIX = "session."
SESSION_EVENT_FIELDS = ("project_id", "session_id", "start_time", "end_time", "duration_ms")


def format_timestamp(value: datetime) -> str:
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class JsonLogFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: dict[str, Any] = {
            "timestamp": format_timestamp(utcnow()),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        request_id = request_id_ctx_var.get()
        if request_id:
            payload["request_id"] = request_id
        principal = principal_ctx_var.get()
        if principal:
            payload["principal"] = principal
        if message.startswith(SESSION_EVENT_PREFIX):
            payload.update(dict.fromkeys(SESSION_EVENT_FIELDS))
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            payload.update(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=_json_default)


def setup_logging(level: str | None = None, logger_levels: Mapping[str, str] | None = None) -> None:
    """Install the JSON handler on the root logger and apply per-logger levels."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel((level or settings.LOG_LEVEL).upper())
    overrides = settings.LOG_LEVELS if logger_levels is None else logger_levels
    for name, name_level in overrides.items():
        logging.getLogger(name).setLevel(name_level.upper())
