"""structlog configuration for applications embedding the ledger engine.

Library modules only call ``structlog.get_logger()``; nothing is configured at
import time. Host applications call ``configure_logging`` once at startup.
"""

import logging
import sys
from typing import Optional

import structlog

from ledgerlight_core.config import LedgerlightConfig


def configure_logging(config: Optional[LedgerlightConfig] = None) -> None:
    """Configure structlog and the stdlib root handler from settings.

    Args:
        config: Settings to read ``log_level`` and ``log_json`` from.
            Defaults to ``LedgerlightConfig()`` (environment / .env).
    """
    config = config or LedgerlightConfig()
    level = logging.getLevelName(config.log_level)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if config.log_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
