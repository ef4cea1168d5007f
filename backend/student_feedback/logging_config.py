"""
Structured JSON logging.

Every log line is one JSON object on stdout. Loggers are split into
channels under the ``student_feedback`` namespace:

- http: request lifecycle and error responses
- db: writes to the student record store
- aggregation: record-to-summary reduction
- llm: calls to the generative-text service
- feedback: the generate-feedback pipeline

The request ID set by the HTTP middleware is attached to every entry
logged while that request is being handled, including entries from
awaited coroutines.
"""

import json
import logging
import os
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGER_NAMESPACE = "student_feedback"
CHANNELS = ("http", "db", "aggregation", "llm", "feedback")
SERVICE_NAME = "student-feedback-backend"

# Third-party loggers that log every outbound request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


class StructuredJsonFormatter(logging.Formatter):
    """
    Render a record as a JSON object.

    Fields: timestamp (UTC, millisecond precision, taken from the record),
    level, service, channel, message, context (always carries request_id)
    and extra. Exceptions are rendered under ``exception`` with their type,
    message and traceback.
    """

    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "service": self.service,
            "channel": getattr(record, "channel", None) or _channel_of(record.name),
            "message": record.getMessage(),
            "context": {
                "request_id": request_id_var.get(""),
                **(getattr(record, "context", None) or {}),
            },
            "extra": getattr(record, "extra_data", None) or {},
        }
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


def _channel_of(logger_name: str) -> str:
    prefix = LOGGER_NAMESPACE + "."
    if logger_name.startswith(prefix):
        return logger_name[len(prefix):]
    return "app"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Install the JSON handler on the root logger and set channel levels.

    Safe to call more than once: an existing JSON handler is replaced
    rather than duplicated.
    """
    resolved = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [
        h for h in root_logger.handlers
        if not isinstance(h.formatter, StructuredJsonFormatter)
    ] + [handler]
    root_logger.setLevel(resolved)

    for channel in CHANNELS:
        get_logger(channel).setLevel(resolved)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger("{}.{}".format(LOGGER_NAMESPACE, channel))


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None):
    """
    Log `message` with business context and extra metadata attached.

    Args:
        logger: channel logger from get_logger()
        level: level name (DEBUG, INFO, WARNING, ERROR)
        message: human-readable message
        context: identifiers such as student_id, subject_id, feedback_id
        extra_data: measurements such as duration_ms, prompt_chars, status_code
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        extra={
            "context": context or {},
            "extra_data": extra_data or {},
            "channel": _channel_of(logger.name),
        },
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
