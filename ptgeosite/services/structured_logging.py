"""
Structured Logging Service

Provides plain or JSON-formatted logging with correlation context, so every
record emitted while a backend is being fetched carries that backend's
identity.

Features:
- JSON log formatter for machine-parseable output
- Run correlation via a short run ID
- Backend correlation (endpoint identity, never credentials)
- Context propagation via contextvars
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional


# Context variables for correlation
run_id_var: ContextVar[Optional[str]] = ContextVar('run_id', default=None)
backend_var: ContextVar[Optional[str]] = ContextVar('backend', default=None)


def get_run_id() -> Optional[str]:
    """Get the current run ID from context."""
    return run_id_var.get()


def set_run_id(run_id: Optional[str]) -> None:
    """Set the run ID in context."""
    run_id_var.set(run_id)


def get_backend() -> Optional[str]:
    """Get the identity of the backend currently being fetched."""
    return backend_var.get()


def set_backend(backend: Optional[str]) -> None:
    """Set the backend identity in context."""
    backend_var.set(backend)


def clear_context() -> None:
    """Clear all context variables."""
    run_id_var.set(None)
    backend_var.set(None)


def generate_run_id() -> str:
    """Generate a new unique run ID."""
    return str(uuid.uuid4())[:8]


class JSONLogFormatter(logging.Formatter):
    """
    JSON formatter for structured logging output.

    Produces one JSON object per line with correlation IDs and any
    ``extra_data`` attached through StructuredLogAdapter.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = get_run_id()
        if run_id:
            log_data["run_id"] = run_id

        backend = get_backend()
        if backend:
            log_data["backend"] = backend

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        if hasattr(record, 'extra_data') and record.extra_data:
            log_data["extra"] = record.extra_data

        return json.dumps(log_data, default=str)


class ContextFormatter(logging.Formatter):
    """Plain-text formatter that prefixes the current backend, if any."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        backend = get_backend()
        if backend:
            return f"[{backend}] {message}"
        return message


class StructuredLogAdapter(logging.LoggerAdapter):
    """
    Logger adapter that accepts an ``extra_data`` keyword.

    Usage:
        logger = get_structured_logger(__name__)
        logger.info("Backend finished", extra_data={"domains": 12})
    """

    def process(self, msg, kwargs):
        extra = kwargs.get('extra', {})

        if 'extra_data' in kwargs:
            extra['extra_data'] = kwargs.pop('extra_data')

        kwargs['extra'] = extra
        return msg, kwargs


def get_structured_logger(name: str) -> StructuredLogAdapter:
    """
    Get a structured logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        StructuredLogAdapter instance
    """
    return StructuredLogAdapter(logging.getLogger(name), {})


class CorrelationContext:
    """
    Context manager for setting correlation IDs.

    Usage:
        with CorrelationContext(backend="qbittorrent://admin@10.0.0.2:8080"):
            logger.info("This log will include the backend identity")
    """

    def __init__(self, run_id: Optional[str] = None, backend: Optional[str] = None):
        self.run_id = run_id
        self.backend = backend
        self._old_run_id = None
        self._old_backend = None

    def __enter__(self):
        self._old_run_id = get_run_id()
        self._old_backend = get_backend()

        if self.run_id:
            set_run_id(self.run_id)
        if self.backend:
            set_backend(self.backend)

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_run_id(self._old_run_id)
        set_backend(self._old_backend)
        return False


def setup_json_logging(
    logger_name: Optional[str] = None,
    level: int = logging.INFO,
    json_output: bool = True
) -> logging.Handler:
    """
    Set up logging for a logger.

    Args:
        logger_name: Logger name (None for root logger)
        level: Minimum log level
        json_output: Whether to output JSON (True) or plain text (False)

    Returns:
        The configured handler
    """
    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()
    logger.setLevel(level)

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if json_output:
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(ContextFormatter(
            '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
        ))

    logger.addHandler(handler)
    return handler
