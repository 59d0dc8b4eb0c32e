"""Logging setup applied once at application start."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

from payrecon.core.config import Settings

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, extra fields carried under ``extra``."""

    def __init__(self, service_name: str = "payrecon", environment: str = "development") -> None:
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        extra = {key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS}
        if extra:
            payload["extra"] = extra
        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings) -> None:
    formatter: dict[str, Any]
    if settings.logging.format == "json":
        formatter = {
            "()": JSONFormatter,
            "environment": settings.environment,
        }
    else:
        formatter = {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "payrecon": {
                    "handlers": ["console"],
                    "level": settings.logging.level.upper(),
                    "propagate": False,
                },
            },
        }
    )


__all__ = ["JSONFormatter", "configure_logging"]
