"""
Logging setup for processes embedding witnessledger.

The library only creates module loggers under the "witnessledger" namespace.
It never configures handlers on import; the host process calls
configure_logging() once at startup.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("witnessledger").setLevel(level.upper())
