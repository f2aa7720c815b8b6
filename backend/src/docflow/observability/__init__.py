"""Observability - structured logging, request correlation and metrics."""

from .logging_config import configure_logging, get_logger
from .request_id import get_request_id, set_request_id

__all__ = ["configure_logging", "get_logger", "get_request_id", "set_request_id"]
