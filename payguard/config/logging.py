"""
Logging configuration for the PayGuard webhook security core
Structured JSON logging with event types and request context
"""

import logging
import os
import json
import queue
from logging.handlers import QueueHandler, QueueListener

# LogRecord attributes that are not user supplied context
_RESERVED_ATTRS = (
    "args", "msg", "exc_info", "exc_text", "stack_info",
    "created", "filename", "funcName", "levelno", "lineno",
    "module", "msecs", "name", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName",
    "taskName", "levelname",
)


# Extra fields that may carry key material; their values never reach the output
_SECRET_EXTRA_KEYS = frozenset({
    "secret", "app_secret", "master_secret", "integrity_secret",
    "encryption_key", "private_key", "signature", "verify_token",
})

REDACTED = "[REDACTED]"


class JsonFormatter(logging.Formatter):
    """
    JSON formatter for structured security events

    Every line carries an event_type ("log" when the caller gave none) and the
    service name. Extras named like key material are replaced with
    "[REDACTED]".
    """

    def __init__(self, service: str = "payguard"):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "service": self.service,
            "event_type": getattr(record, "event_type", None) or "log",
            "message": record.getMessage(),
            "logger_name": record.name,
        }

        for k, v in record.__dict__.items():
            if k in payload or k.startswith("_") or k in _RESERVED_ATTRS:
                continue
            payload[k] = REDACTED if k.lower() in _SECRET_EXTRA_KEYS else v

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def build_logger(name: str = "payguard") -> logging.Logger:
    """
    Build configured logger with JSON formatting and queue handling

    Module loggers below "payguard" (e.g. "payguard.api.webhooks") get no
    handler of their own and reach the stream through the top-level logger.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    log = logging.getLogger(name)

    if getattr(log, "_configured", False):
        return log

    root_name = name.split(".", 1)[0]
    if root_name != name:
        build_logger(root_name)
        return log

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    fmt = os.getenv("LOG_FORMAT", "json")

    log.setLevel(level)

    # Queue-based logging keeps webhook handlers from blocking on stream I/O
    log_queue = queue.Queue(-1)
    queue_handler = QueueHandler(log_queue)
    log.addHandler(queue_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)

    if fmt == "json":
        stream_handler.setFormatter(JsonFormatter(service=name))
    else:
        stream_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )

    listener = QueueListener(log_queue, stream_handler, respect_handler_level=True)
    listener.start()

    log._configured = True
    return log


# Global logger instance
logger = build_logger("payguard")
