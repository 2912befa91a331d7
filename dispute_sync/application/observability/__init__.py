"""Application-level observability utilities."""

from dispute_sync.application.observability.correlation import (
    generate_correlation_id,
    get_correlation_id,
    get_sync_account,
    set_correlation_id,
    sync_context,
    sync_context_processor,
)

__all__ = [
    "generate_correlation_id",
    "get_correlation_id",
    "get_sync_account",
    "set_correlation_id",
    "sync_context",
    "sync_context_processor",
]
