import logging
import os
from logging.handlers import RotatingFileHandler

from app.platform.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _log_level() -> int:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(formatter: logging.Formatter, level: int) -> RotatingFileHandler:
    # 1. Logs live under LOG_DIR, relative to the working directory unless absolute
    log_dir = os.path.join(os.getcwd(), settings.LOG_DIR)
    os.makedirs(log_dir, exist_ok=True)

    # 2. Rotate at 10 MB, keep five old files
    handler = RotatingFileHandler(
        os.path.join(log_dir, settings.LOG_FILE),
        maxBytes=10_000_000,
        backupCount=5,
        encoding="utf-8",
        errors="backslashreplace",
    )
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def get_logger(name: str):
    """
    Logger for a waitlist module, writing to the console and to the rotating
    log file. Handlers are attached once per name.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    level = _log_level()
    logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    logger.addHandler(_file_handler(formatter, level))
    logger.addHandler(console_handler)
    # Handlers are attached here; don't double-print through the root logger.
    logger.propagate = False

    return logger
