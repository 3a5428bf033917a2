from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
# Pillow logs every decoded image chunk at debug level.
QUIET_LOGGERS = ("PIL",)


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger for CLI runs; third-party chatter stays at WARNING."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
