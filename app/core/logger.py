import atexit
import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from queue import Queue

from app.core.settings import settings

_log_listener = None

# 32-byte hex secrets (wallet private keys). Addresses are 20 bytes and pass through.
_PRIVATE_KEY_RE = re.compile(r"\b(0x)?[0-9a-fA-F]{64}\b")

# Structured context passed via `extra=` that the JSON output keeps
CONTEXT_FIELDS = ("trader_id", "venue", "provider", "step", "upstream_status")

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class SecretRedactionFilter(logging.Filter):
    """Masks anything shaped like a private key before it reaches a handler."""

    def filter(self, record):
        message = record.getMessage()
        if _PRIVATE_KEY_RE.search(message):
            record.msg = _PRIVATE_KEY_RE.sub("0x***REDACTED***", message)
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shippers (prod)."""

    def format(self, record):
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ColorFormatter(logging.Formatter):
    """Level-coloured single-line output for local development."""

    LEVEL_COLORS = {
        logging.DEBUG: "\x1b[38;20m",
        logging.INFO: "\x1b[32;20m",
        logging.WARNING: "\x1b[33;20m",
        logging.ERROR: "\x1b[31;20m",
        logging.CRITICAL: "\x1b[31;1m",
    }
    RESET = "\x1b[0m"
    LINE = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    def __init__(self):
        super().__init__()
        self._formatters = {
            level: logging.Formatter(color + self.LINE + self.RESET, datefmt="%H:%M:%S")
            for level, color in self.LEVEL_COLORS.items()
        }
        self._plain = logging.Formatter(self.LINE, datefmt="%H:%M:%S")

    def format(self, record):
        return self._formatters.get(record.levelno, self._plain).format(record)


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if settings.ENV == "prod" else ColorFormatter())
    return handler


def setup_logging():
    """
    Non-blocking logging: request handlers push records onto a queue and a
    background listener thread writes them to stdout. Safe to call twice.
    """
    global _log_listener

    if _log_listener is not None:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL)
    root_logger.handlers = []

    log_queue = Queue(-1)
    queue_handler = logging.handlers.QueueHandler(log_queue)
    # Redact before the record is queued so no handler ever sees a raw key
    queue_handler.addFilter(SecretRedactionFilter())
    root_logger.addHandler(queue_handler)

    _log_listener = logging.handlers.QueueListener(log_queue, _console_handler())
    _log_listener.start()
    atexit.register(_log_listener.stop)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
