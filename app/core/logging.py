"""
Structured logging for the API.

Every record is emitted as one JSON object carrying the service name, the
deployment environment and, inside a request, the X-Request-ID value set by
CorrelationIdMiddleware.
"""
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Union

from pythonjsonlogger import jsonlogger

from app.core.config import settings

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_FORMAT = "%(timestamp) %(level) %(name) %(message)"

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "passlib")


class RequestContextFormatter(jsonlogger.JsonFormatter):
    def __init__(self, *args, service: str = settings.app_name, environment: str = settings.environment, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service
        self.environment = environment

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service
        log_record["environment"] = self.environment

        request_id = request_id_var.get()
        if request_id:
            log_record["request_id"] = request_id


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = settings.log_level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logging(level: Union[int, str, None] = None, quiet: Iterable[str] = NOISY_LOGGERS) -> Optional[logging.Handler]:
    """Attach one JSON handler to the root logger. Returns None if already configured."""
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    if any(isinstance(h.formatter, RequestContextFormatter) for h in root.handlers):
        return None

    handler = logging.StreamHandler()
    handler.setFormatter(RequestContextFormatter(LOG_FORMAT))
    root.addHandler(handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
