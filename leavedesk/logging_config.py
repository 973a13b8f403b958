# leavedesk/logging_config.py
import logging

from .config import settings


def setup_logging(level=None):
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )

# call setup_logging() once at startup so all leavedesk.* loggers share it
