"""Bootstrap wiring for dispute_sync."""

from dispute_sync.bootstrap.dispute_sync import (
    DisputeSync,
    create_dispute_sync,
    create_store_gateway,
)

__all__ = ["DisputeSync", "create_dispute_sync", "create_store_gateway"]
