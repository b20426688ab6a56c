# catalog_admin/core/logging.py
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO", name: Optional[str] = None) -> logging.Logger:
    """Configure a logger with a single stream handler.

    Args:
        level: Log level name, e.g. "INFO" or "WARNING".
        name: Logger name; the root logger when omitted.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    if not any(getattr(h, "_catalog_admin", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._catalog_admin = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
