"""Logging setup driven by ObservabilityConfig.

Components log through ``logging.getLogger(__name__)`` and pass context
in ``extra``. The JSON formatter keeps that context; the plain formatter
uses the configured format string.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from .config import ObservabilityConfig, get_config
from .domain.errors import ConfigurationError

# Attributes every LogRecord has; anything else came from ``extra``.
_RESERVED = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "time": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: Optional[ObservabilityConfig] = None) -> logging.Logger:
    """Attach a handler to the ``ridelocate`` logger.

    Calling this again replaces the previously installed handler.

    Args:
        config: Logging configuration; defaults to the application config.

    Returns:
        The configured package logger.

    Raises:
        ConfigurationError: If the level is not a standard logging level.
    """
    config = config or get_config().observability
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        raise ConfigurationError(
            f"Unknown log level {config.level!r}",
            setting_name="RL_LOG_LEVEL",
            expected_type="DEBUG, INFO, WARNING, ERROR or CRITICAL",
        )

    logger = logging.getLogger("ridelocate")

    for handler in list(logger.handlers):
        if getattr(handler, "_ridelocate", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._ridelocate = True  # type: ignore[attr-defined]
    if config.structured:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(config.format))

    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
