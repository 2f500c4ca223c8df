# This module contains the logging setup for the SocialAT client, with a custom
# formatter for coloured console output.
import logging
from typing import Optional

APP_LOGGER_NAME = "socialat"


class CustomFormatter(logging.Formatter):
    """
    A custom formatter for logging messages with different log levels.

    Attributes:
        grey (str): ANSI escape sequence for grey color.
        yellow (str): ANSI escape sequence for yellow color.
        red (str): ANSI escape sequence for red color.
        bold_red (str): ANSI escape sequence for bold red color.
        reset (str): ANSI escape sequence to reset color.
        format (str): The log message format.
        FORMATS (dict): A dictionary mapping log levels to their respective log message formats.

    Usage:
        formatter = CustomFormatter()
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
    """
    grey = "\x1b[37;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    dark_grey = "\x1b[30;1m"
    reset = "\x1b[0m"
    format = '[%(levelname)s] %(asctime)s - %(name)s - %(message)s'

    FORMATS = {
        logging.DEBUG: dark_grey + format + reset,
        logging.INFO: grey + format + reset,
        logging.WARNING: yellow + format + reset,
        logging.ERROR: red + format + reset,
        logging.CRITICAL: bold_red + format + reset
    }

    def format(self, record):
        """
        Formats the log record based on its log level.

        Args:
            record (logging.LogRecord): The log record to be formatted.

        Returns:
            str: The formatted log message.
        """
        log_fmt = self.FORMATS.get(record.levelno)
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


# create the application logger
log = logging.getLogger(APP_LOGGER_NAME)
log.setLevel(logging.DEBUG)

# create console handler with a higher log level
if not log.handlers:
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(CustomFormatter())
    log.addHandler(ch)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Return a logger under the application logger.

    Args:
        name: Module name, usually ``__name__``. None returns the application logger.

    Returns:
        logging.Logger: The child logger.
    """
    if not name:
        return log
    return log.getChild(name)


def set_console_level(level: int) -> None:
    """Set the level of the console handler(s) on the application logger."""
    for handler in log.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def setup_file_logging(log_file: str, level: int = logging.INFO) -> logging.Handler:
    """
    Add a plain-text file handler to the application logger.

    Args:
        log_file: Path of the log file (appended to).
        level: Minimum level written to the file.

    Returns:
        logging.Handler: The handler that was added.
    """
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter('[%(levelname)s] %(asctime)s - %(name)s - %(message)s'))
    log.addHandler(handler)
    set_console_level(level)
    return handler
