"""
Logging configuration for the career metrics engine.

Request-scoped loggers tag each record with the user and component it
belongs to, both as a readable message prefix and as record attributes
that the JSON formatter emits as separate fields.
"""

import json
import logging
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple

# Record attributes set by MetricsLogger
CONTEXT_FIELDS = ("user_id", "component")


class MetricsLogger(logging.LoggerAdapter):
    """
    Adapter that carries a metrics request's user and component.

    Messages read ``[user:1a2b3c4d] [dashboard] message``; the full user id
    travels on the record for structured output.
    """

    def __init__(self, logger: logging.Logger, user_id: Optional[str] = None, component: Optional[str] = None):
        super().__init__(logger, {"user_id": user_id, "component": component})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        prefix = []
        if self.extra["user_id"]:
            prefix.append(f"[user:{self.extra['user_id'][:8]}]")
        if self.extra["component"]:
            prefix.append(f"[{self.extra['component']}]")

        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        if prefix:
            return f"{' '.join(prefix)} {msg}", kwargs
        return msg, kwargs


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with request context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: "simple" or "json"
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stderr keeps stdout clean for the CLI's JSON output
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    if format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(name: str, user_id: Optional[str] = None, component: Optional[str] = None) -> MetricsLogger:
    """Logger for one request, tagged with user and component."""
    return MetricsLogger(logging.getLogger(name), user_id=user_id, component=component)
