"""SessionVault Logging Configuration.

Session events carry their identifiers as structured fields rather than
inside the message text:

    logger.info("Revoked session", extra=session_fields(role="access",
                session_id=sid, user_id=uid))

The JSON formatter emits them as top-level keys; the dev formatter appends
them as ``key=value`` pairs. Both handlers run a redaction filter so a raw
bearer token that ends up in a message or exception is never written out.
"""

import json
import logging
import re
import sys
from typing import Any, Literal

# Human-readable format for development
DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Structured fields a record may carry via ``extra=``, in output order
SESSION_FIELDS = ("role", "session_id", "user_id")

# header.payload.signature where the header is base64url JSON ("eyJ...")
_JWT_PATTERN = re.compile(r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")
REDACTED = "[REDACTED_TOKEN]"


def session_fields(
    role: str | None = None,
    session_id: str | None = None,
    user_id: int | None = None,
) -> dict[str, Any]:
    """Build an ``extra=`` mapping with the session fields that are set."""
    fields = {"role": role, "session_id": session_id, "user_id": user_id}
    return {key: value for key, value in fields.items() if value is not None}


def _present_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in SESSION_FIELDS
        if getattr(record, name, None) is not None
    }


class TokenRedactionFilter(logging.Filter):
    """Mask anything shaped like a signed token in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _JWT_PATTERN.sub(REDACTED, message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with session fields as top-level keys.

    Values are serialised with json.dumps(), so quotes and newlines in
    messages cannot break the line.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_present_fields(record),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = _JWT_PATTERN.sub(
                REDACTED, self.formatException(record.exc_info)
            )
        return json.dumps(log_entry, default=str)


class DevFormatter(logging.Formatter):
    """Readable single-line format with session fields appended."""

    def __init__(self):
        super().__init__(fmt=DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _present_fields(record)
        if not fields:
            return line
        suffix = " ".join(f"{name}={value}" for name, value in fields.items())
        head, sep, tail = line.partition("\n")
        return f"{head} | {suffix}{sep}{tail}"


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format - 'structured' for JSON, 'dev' for readable
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if format_type == "structured" else DevFormatter())
    handler.addFilter(TokenRedactionFilter())

    logging.root.handlers = [handler]
    logging.root.setLevel(getattr(logging, level.upper()))

    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    # redis-py logs connection churn at DEBUG
    logging.getLogger("redis").setLevel(
        logging.DEBUG if level.upper() == "DEBUG" else logging.WARNING
    )

    logging.getLogger("sessionvault").info(
        f"Logging configured: level={level}, format={format_type}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the sessionvault prefix."""
    return logging.getLogger(f"sessionvault.{name}")
