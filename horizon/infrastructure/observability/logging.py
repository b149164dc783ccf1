"""JSON logs on stdout, with provider secrets scrubbed before they are written"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from horizon.config import settings

REDACTED_FIELDS = frozenset({"password", "access_token", "secret", "session_secret", "ssn", "processor_token"})
REDACTED = "[redacted]"

# Chatty client libraries; their request lines would otherwise include provider URLs
QUIET_LOGGERS = ("httpx", "httpcore")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Adds timestamp, level and service name, and blanks out secret fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name
        log_record["environment"] = settings.environment

        for key in REDACTED_FIELDS & log_record.keys():
            log_record[key] = REDACTED


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    root.handlers = [handler]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_upstream_failure(provider: str, operation: str, error: Exception, request_id: str | None = None) -> None:
    """Log a failed provider call with enough context to correlate it"""
    logging.getLogger("horizon.upstream").error(
        f"{provider} {operation} failed: {error}",
        extra={
            "request_id": request_id,
            "provider": provider,
            "operation": operation,
            "error_type": type(error).__name__,
        },
    )
