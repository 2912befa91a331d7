"""Dispute sync configuration.

Environment Variables:
- DISPUTE_STORE_URI: Base URI of the metadata store (required)
- DISPUTE_STORE_TIMEOUT_SECONDS: Store request timeout (default: 30.0, min: 1.0, max: 300.0)
- DISPUTE_STORE_AUTH_TOKEN: Store credential for writes (optional)
- DISPUTE_SCAN_MAX: Upper bound on dispute indices scanned for juror draws
  (optional, unbounded when unset)
- LOG_ENVIRONMENT: 'production' for JSON logs, 'development' for console
  (default: production)
- LOG_LEVEL: Minimum log level name (default: INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_STORE_TIMEOUT_SECONDS = 30.0
MIN_STORE_TIMEOUT_SECONDS = 1.0
MAX_STORE_TIMEOUT_SECONDS = 300.0

DEFAULT_LOG_ENVIRONMENT = "production"


def _get_int_env(key: str, default: int | None) -> int | None:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default."""
    value = os.environ.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for one dispute sync instance.

    Attributes:
        store_uri: Base URI of the metadata store.
        store_timeout_seconds: Per-request store timeout.
        store_auth_token: Credential used for store writes, if known.
        scan_max_disputes: Optional bound for the juror draw scan.
        log_environment: structlog output mode.
        log_level: Minimum log level name, or None for INFO.
    """

    store_uri: str
    store_timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS
    store_auth_token: str | None = None
    scan_max_disputes: int | None = None
    log_environment: str = DEFAULT_LOG_ENVIRONMENT
    log_level: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.store_uri:
            raise ValueError("store_uri must not be empty")
        if not (
            MIN_STORE_TIMEOUT_SECONDS
            <= self.store_timeout_seconds
            <= MAX_STORE_TIMEOUT_SECONDS
        ):
            raise ValueError(
                f"store_timeout_seconds must be between {MIN_STORE_TIMEOUT_SECONDS} "
                f"and {MAX_STORE_TIMEOUT_SECONDS}, got {self.store_timeout_seconds}"
            )
        if self.scan_max_disputes is not None and self.scan_max_disputes < 0:
            raise ValueError(
                f"scan_max_disputes must be >= 0, got {self.scan_max_disputes}"
            )

    @classmethod
    def from_environment(cls) -> SyncConfig:
        """Create config from environment variables with defaults.

        Raises:
            ValueError: If a required variable is missing.
        """
        missing = [key for key in ("DISPUTE_STORE_URI",) if not os.environ.get(key)]
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        timeout = _get_float_env(
            "DISPUTE_STORE_TIMEOUT_SECONDS", DEFAULT_STORE_TIMEOUT_SECONDS
        )
        # Clamp to valid range
        timeout = max(MIN_STORE_TIMEOUT_SECONDS, min(timeout, MAX_STORE_TIMEOUT_SECONDS))

        scan_max = _get_int_env("DISPUTE_SCAN_MAX", None)
        if scan_max is not None and scan_max < 0:
            scan_max = None

        return cls(
            store_uri=os.environ["DISPUTE_STORE_URI"],
            store_timeout_seconds=timeout,
            store_auth_token=os.environ.get("DISPUTE_STORE_AUTH_TOKEN") or None,
            scan_max_disputes=scan_max,
            log_environment=os.environ.get("LOG_ENVIRONMENT", DEFAULT_LOG_ENVIRONMENT),
            log_level=os.environ.get("LOG_LEVEL") or None,
        )
