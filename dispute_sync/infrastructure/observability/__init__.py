"""Observability infrastructure: structlog configuration.

Usage:
    from dispute_sync.infrastructure.observability import configure_structlog

    configure_structlog(environment="development")
"""

from dispute_sync.infrastructure.observability.logging import (
    configure_structlog,
    resolve_log_level,
)

__all__: list[str] = ["configure_structlog", "resolve_log_level"]
