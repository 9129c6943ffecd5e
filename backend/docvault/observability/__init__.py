"""Observability module for DocVault.

Provides structured logging, metrics, request correlation and health checks.
"""

from .logging_config import configure_logging
from .request_id import request_id_var, get_request_id, set_request_id, generate_request_id

__all__ = [
    "configure_logging",
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
]
