"""
Logging setup for ChefCopilot.

``setup_logging()`` configures the root logger once, at application or
worker start-up, from ``settings.LOG_LEVEL`` and ``settings.LOG_FORMAT``:

  • ``"json"`` → one JSON object per line (for log shippers)
  • ``"text"`` → human readable console output

Usage:
    from chefcopilot.core.logging import get_logger, setup_logging
    setup_logging()
    logger = get_logger(__name__)
    logger.info("Something happened")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from chefcopilot.core.config import settings

_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord has; anything else came in through ``extra=``
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

_configured = False


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line, including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Safe to call more than once; only the first call installs a handler.

    Args:
        level: Override for ``settings.LOG_LEVEL``
        log_format: Override for ``settings.LOG_FORMAT`` (``json`` or ``text``)
    """
    global _configured

    if _configured:
        return

    resolved_level = (level or settings.LOG_LEVEL).upper()
    resolved_format = log_format or settings.LOG_FORMAT

    handler = logging.StreamHandler(sys.stdout)
    if resolved_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(resolved_level)
    root.addHandler(handler)

    # Third-party libraries are noisy at INFO
    for noisy in ("httpx", "sentence_transformers", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a named logger (propagates to the root handler)."""
    return logging.getLogger(name)
