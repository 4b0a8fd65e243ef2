import logging
import sys
from logging import StreamHandler

from campus_events.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore")


def get_log_level() -> int:
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL.upper())
    return logging.DEBUG if settings.debug else logging.INFO


def setup_logging() -> None:
    logging.basicConfig(
        level=get_log_level(),
        format=LOG_FORMAT,
        handlers=[StreamHandler(sys.stdout)],
    )
    # SQL echo is switched on through LOG_DB instead
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
