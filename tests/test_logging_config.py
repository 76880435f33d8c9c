import logging

import pytest
from PySide6.QtCore import QCommandLineParser

from treepruner.logging_config import (
    LOGGER_NAME, add_logging_options, setup_logging, setup_logging_from_parser
)


@pytest.fixture
def app_logger():
    logger = logging.getLogger(LOGGER_NAME)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_repeated_setup_does_not_duplicate_handlers(app_logger):
    setup_logging()
    setup_logging()
    assert len(app_logger.handlers) == 1
    assert app_logger.level == logging.INFO


def test_log_file_is_written(app_logger, tmp_path):
    path = tmp_path / "treepruner.log"
    setup_logging(level=logging.DEBUG, log_file=str(path))
    logging.getLogger(f"{LOGGER_NAME}.model").debug("generated a tree")

    # Replacing the handlers closes the file
    setup_logging()
    text = path.read_text(encoding="utf-8")
    assert "treepruner.model" in text
    assert "generated a tree" in text


def test_flags_from_command_line(app_logger, tmp_path):
    path = tmp_path / "debug.log"
    parser = QCommandLineParser()
    options = add_logging_options(parser)
    assert parser.parse(["treepruner", "--debug", "--log-file", str(path)])

    setup_logging_from_parser(parser, options)
    assert app_logger.level == logging.DEBUG
    assert any(isinstance(h, logging.FileHandler) for h in app_logger.handlers)


def test_defaults_without_flags(app_logger):
    parser = QCommandLineParser()
    options = add_logging_options(parser)
    assert parser.parse(["treepruner"])

    setup_logging_from_parser(parser, options)
    assert app_logger.level == logging.INFO
    assert not any(isinstance(h, logging.FileHandler) for h in app_logger.handlers)
