"""
Logging setup for the Trackium location agent.

Console output follows the configured level; the log file always keeps
DEBUG detail so provider responses can be inspected after the fact.
"""

import logging
import time
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = "trackium_location",
    log_file: Optional[str] = None,
    log_level: str = "INFO"
) -> logging.Logger:
    """
    Configure the agent logger.

    Args:
        name: Logger name
        log_file: Path of the DEBUG log file (console only when empty)
        log_level: Console level name; unknown names fall back to INFO

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


class LoggerContext:
    """
    Log the start, duration and outcome of one operation.

    Failures are logged as a single line; the traceback is left to
    whoever handles the exception.
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.duration = 0.0
        self._started = 0.0

    def __enter__(self):
        self._started = time.monotonic()
        self.logger.info(f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.monotonic() - self._started

        if exc_type is not None:
            self.logger.error(f"Failed {self.operation} after {self.duration:.2f}s: {exc_val}")
            return False

        self.logger.info(f"Completed {self.operation} in {self.duration:.2f}s")
        return False
