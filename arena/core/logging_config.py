"""
Process-wide logging setup.

The API server and the cycle worker both call setup_logging() once at
start; the service name ends up on every JSON record so their output
can share one log stream.
"""

import json
import logging
import sys

from .config import get_settings

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "sqlalchemy.engine")


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    def __init__(self, service: str, **kwargs):
        super().__init__(**kwargs)
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(service: str = "api") -> None:
    """
    Configure the root logger.

    Production gets JSON on stdout, everything else the pipe-separated
    text format. Calling it again replaces the handler instead of
    stacking a second one.
    """
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if settings.environment == "production":
        handler.setFormatter(JSONFormatter(service, datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logging.root.handlers = [handler]
    logging.root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
