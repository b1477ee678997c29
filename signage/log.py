from __future__ import annotations
import logging
import logging.handlers

from . import settings

APP_NAME = "signage"


def setup_logging(level: str | int | None = None, *, to_file: bool = True) -> logging.Logger:
    logger = logging.getLogger(APP_NAME)
    logger.setLevel(level or settings.LOG_LEVEL)

    # Clear duplicate handlers if reinit
    for h in list(logger.handlers):
        logger.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if to_file:
        settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            settings.LOG_DIR / f"{APP_NAME}.log",
            maxBytes=10_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    logger.info("%s logging initialised (data: %s)", APP_NAME, settings.DATA_PATH)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Return a child of the logger configured by setup_logging().
    Usage: log = get_logger(__name__)
    """
    return logging.getLogger(name or APP_NAME)
