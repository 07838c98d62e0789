"""Structured logger for observability."""

import logging
from typing import Any, Optional

# Configure root logger with JSON-like structured format
_logger = logging.getLogger("call_tracker")
_logger.setLevel(logging.INFO)

# Create console handler if not exists
if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    _logger.addHandler(handler)


def log_event(
    tenant_id: Optional[str],
    component: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """
    Log a structured event.

    Args:
        tenant_id: Tenant identifier (None for cross-tenant jobs)
        component: Component name (e.g., 'http', 'coordinator', 'sweeper')
        level: Log level (default: INFO)
        **kwargs: Additional structured fields to log
    """
    fields = {
        "tenant_id": tenant_id,
        "component": component,
    }
    fields.update(kwargs)

    # Format as key=value pairs for readability
    log_parts = [f"{k}={v!r}" for k, v in fields.items()]
    log_message = " | ".join(log_parts)

    _logger.log(level, log_message)


# Export logger instance for modules that log free-form messages
logger = _logger
