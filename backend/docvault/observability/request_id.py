"""Request ID correlation for logs.

HTTP requests take the id from the X-Request-ID header or get a fresh one;
the scan worker uses the Celery task id, so a document's upload and its
scan can be followed through the logs by id.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

MAX_INCOMING_ID_LENGTH = 128


def generate_request_id() -> str:
    return str(uuid.uuid4())


def incoming_request_id(header_value: Optional[str]) -> str:
    """Client-supplied id if usable, otherwise a fresh one.

    Example:
        >>> incoming_request_id("abc-123")
        'abc-123'
    """
    value = (header_value or "").strip()
    if not value or len(value) > MAX_INCOMING_ID_LENGTH or not value.isprintable():
        return generate_request_id()
    return value


def get_request_id() -> str:
    """Current request ID, or "no-request-id" outside a request or task."""
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: Optional[str]) -> Token:
    return request_id_var.set(request_id)


def reset_request_id(token: Token) -> None:
    request_id_var.reset(token)
