"""
Logging Configuration
Sets up the 'treepruner' logger namespace from the command line.

Why is this file needed?
------------------------
The `--debug` and `--log-file` flags belong to logging, not to the window, so
they are registered and interpreted here. `main.py` only hands over its parser.
"""
import logging
import sys
from typing import Optional

from PySide6.QtCore import QCommandLineOption, QCommandLineParser

LOGGER_NAME = "treepruner"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# The file keeps the date and the line number for bug reports
FILE_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"


def add_logging_options(parser: QCommandLineParser) -> tuple[QCommandLineOption, QCommandLineOption]:
    """Register `--debug` and `--log-file <path>` on the parser."""
    debug_option = QCommandLineOption(["debug"], "Enable debug logging.")
    log_file_option = QCommandLineOption(["log-file"], "Also write the log to this file.", "path")
    parser.addOption(debug_option)
    parser.addOption(log_file_option)
    return debug_option, log_file_option


def setup_logging_from_parser(
    parser: QCommandLineParser,
    options: tuple[QCommandLineOption, QCommandLineOption],
) -> logging.Logger:
    """Configure logging from an already processed parser."""
    debug_option, log_file_option = options
    return setup_logging(
        level=logging.DEBUG if parser.isSet(debug_option) else logging.INFO,
        log_file=parser.value(log_file_option) or None,
    )


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the 'treepruner' logger.

    Calling it again replaces the previous handlers (and closes an open log
    file), so the output never doubles up.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    logger.info(f"Logging initialized at {logging.getLevelName(level)}"
                + (f", writing to {log_file}." if log_file else "."))
    return logger
