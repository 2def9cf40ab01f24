"""
Logging setup shared by the Flask app and the generation pipeline
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

_configured = False


def setup_logging(service_name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Configure root logging once and return the service logger.

    Args:
        service_name: Logger name for the service (e.g., 'sitecraft')
        log_level: Level name such as 'INFO' or 'DEBUG' (defaults to INFO)

    Returns:
        The configured service logger
    """
    global _configured

    level = getattr(logging, (log_level or 'INFO').upper(), logging.INFO)

    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root = logging.getLogger()
        root.addHandler(handler)
        _configured = True

    logging.getLogger().setLevel(level)
    logger = logging.getLogger(service_name)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger"""
    return logging.getLogger(name)
