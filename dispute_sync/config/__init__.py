"""Configuration for dispute_sync."""

from dispute_sync.config.sync_config import SyncConfig

__all__ = ["SyncConfig"]
