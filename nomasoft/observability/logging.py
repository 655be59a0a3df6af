from __future__ import annotations

import logging
import re
from logging.config import dictConfig

from asgi_correlation_id.context import correlation_id
from pythonjsonlogger import jsonlogger

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
# Submitter-supplied values that never belong in the log stream
SUBMITTER_EXTRAS = ("email", "reply_to", "company", "submission", "message_body")
REDACTED = "[redacted]"

_LOG_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "correlation_id"}


class CorrelationIdFilter(logging.Filter):
    """Attach the current request correlation ID to each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get() or "unknown"
        return True


def mask_emails(value: str) -> str:
    return EMAIL_PATTERN.sub(REDACTED, value)


class SubmitterRedactionFilter(logging.Filter):
    """Keep contact form PII out of log output.

    Known submitter extras are replaced outright; email addresses are masked
    in the rendered message and in any other string extra, which covers
    provider error bodies echoing the recipient or reply-to address.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = record.getMessage()
            record.args = None
        if isinstance(record.msg, str):
            record.msg = mask_emails(record.msg)

        for key, value in list(record.__dict__.items()):
            if key in _LOG_RECORD_FIELDS:
                continue
            if key in SUBMITTER_EXTRAS:
                setattr(record, key, REDACTED)
            elif isinstance(value, str):
                setattr(record, key, mask_emails(value))
        return True


def configure_logging(level: str = "INFO") -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "with_correlation": {"()": CorrelationIdFilter},
                "redact_submitter": {"()": SubmitterRedactionFilter},
            },
            "formatters": {
                "json": {
                    "()": jsonlogger.JsonFormatter,
                    "fmt": (
                        "%(asctime)s %(levelname)s %(name)s "
                        "%(message)s %(correlation_id)s"
                    ),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "filters": ["with_correlation", "redact_submitter"],
                }
            },
            "root": {"handlers": ["default"], "level": level},
            "loggers": {
                "nomasoft": {"level": level},
                "httpx": {"level": "WARNING"},
                "uvicorn.error": {
                    "handlers": ["default"],
                    "level": level,
                    "propagate": False,
                },
                "uvicorn.access": {
                    "handlers": ["default"],
                    "level": level,
                    "propagate": False,
                },
            },
        }
    )
