"""Logging setup."""

from __future__ import annotations

import logging

from payroll_hold.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings.

    Safe to call more than once; only the level is updated after the
    first call.
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(settings.log_level)
    # SQL echo is controlled separately through the engine
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
