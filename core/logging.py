"""
Logging configuration for sync runs
"""

import logging
import sys
from core.config import settings

# Per-statement, per-request and per-job chatter from the libraries a sync run drives
NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "httpx", "httpcore", "apscheduler")


def setup_logging(level: str = None):
    """Configure the root logger for the sync scripts"""
    level = level or settings.LOG_LEVEL
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Feed and item outcomes stay visible; library internals only surface on problems
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {level.upper()} level")
