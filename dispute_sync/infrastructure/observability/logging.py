"""structlog setup for dispute sync processes.

Every entry carries the sync context bound by the event dispatcher:

    {
        "timestamp": "2024-01-01T00:00:00.000000Z",
        "level": "info",
        "event": "dispute_created_stored",
        "correlation_id": "uuid",
        "account": "0x...",
        ...handler fields
    }

production renders one JSON object per line with tracebacks folded into an
"exception" field; any other environment renders colored console lines.
"""

from __future__ import annotations

import logging
import os
from typing import cast

import structlog
from structlog.typing import Processor

from dispute_sync.application.observability.correlation import sync_context_processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
PRODUCTION = "production"


def resolve_log_level(level: str | None = None) -> int:
    """Numeric level for a level name; falls back to LOG_LEVEL, then INFO.

    Unknown names resolve to INFO.
    """
    name = (level or os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _processors(environment: str) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        cast(Processor, sync_context_processor),
        structlog.processors.StackInfoRenderer(),
    ]
    if environment == PRODUCTION:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def configure_structlog(environment: str = PRODUCTION, level: str | None = None) -> None:
    """Configure structlog once at process start.

    Args:
        environment: 'production' for JSON lines, anything else for console.
        level: Minimum level name. Defaults to the LOG_LEVEL variable.
    """
    structlog.configure(
        processors=_processors(environment),
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
