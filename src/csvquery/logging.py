"""Process-wide logging setup and the per-request id carried into log records."""
from __future__ import annotations
import logging
import sys
import uuid
from contextvars import ContextVar

logger = logging.getLogger("csvquery")

_request_id: ContextVar[str] = ContextVar("csvquery_request_id", default="-")


def get_request_id() -> str:
    return _request_id.get()


def new_request_id() -> str:
    """Assign a fresh short id to the current request context and return it."""
    request_id = uuid.uuid4().hex[:8]
    _request_id.set(request_id)
    return request_id


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at startup; uvicorn's loggers follow the same level."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s")
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
