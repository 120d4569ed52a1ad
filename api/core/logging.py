"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)` with `event key=value` messages.
"""

from __future__ import annotations

import logging

from core import config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or config.log_level()),
        format=LOG_FORMAT,
        force=True,
    )
    # httpx logs every outbound request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
