"""Structured JSON logging configuration.

Every record carries the request id and, once known, the wallet address the
request is acting for, so one click or consent visit can be followed
through the logs.
"""

import contextvars
import logging
import uuid

from pythonjsonlogger.json import JsonFormatter

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
subscriber_var: contextvars.ContextVar[str] = contextvars.ContextVar("subscriber", default="")


class RequestContextFilter(logging.Filter):
    """Stamp request_id and subscriber onto every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")  # type: ignore[attr-defined]
        record.subscriber = subscriber_var.get("")  # type: ignore[attr-defined]
        return True


def setup_logging(*, debug: bool = False) -> None:
    """Configure root logger with JSON formatter and request context filter."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s %(subscriber)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    )
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    # httpx logs every outbound request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def bind_subscriber(address: str) -> None:
    """Attach a wallet address to log records for the rest of this context."""
    subscriber_var.set(address.lower())


def generate_request_id() -> str:
    """Generate a new request ID."""
    return uuid.uuid4().hex[:16]
