import logging
import sys
import os
from typing import Optional, TextIO

_console_stream: Optional[TextIO] = None


def get_logger(name: str, level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Create or retrieve a logger with optional file logging.

    Args:
        name (str): Name of the logger.
        level (str, optional): Logging level ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL").
        log_file (str, optional): Path to log file. If None, logs only to console.

    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:  # Avoid adding duplicate handlers
        numeric_level = getattr(logging, level.upper(), logging.INFO)
        logger.setLevel(numeric_level)

        stream = _console_stream if _console_stream and name.startswith("stock_tracker") else sys.stdout
        console_handler = logging.StreamHandler(stream)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def set_level(level: str) -> None:
    """
    Apply a logging level to every logger already created under the
    ``stock_tracker`` namespace (used once the config file has been read).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    for name, obj in logging.Logger.manager.loggerDict.items():
        if name.startswith("stock_tracker") and isinstance(obj, logging.Logger):
            obj.setLevel(numeric_level)


def set_stream(stream: TextIO) -> None:
    """
    Send console output of ``stock_tracker`` loggers to ``stream``, both for
    loggers already created and for those created later. The CLI uses this
    to keep stdout for its JSON output.
    """
    global _console_stream
    _console_stream = stream
    for name, obj in logging.Logger.manager.loggerDict.items():
        if name.startswith("stock_tracker") and isinstance(obj, logging.Logger):
            for handler in obj.handlers:
                if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                    handler.setStream(stream)
