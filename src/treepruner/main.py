"""
Application Initialization
==========================
This module constructs the application and starts the Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Sets up logging and the application identity (used by QSettings).
2. Resolves the startup state: `--state` on the command line, otherwise the
   last state stored in the settings, otherwise the default tree.
3. Instantiates the session (model) and the main window (view).
"""
import logging
import os
import sys
from typing import Optional

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import QCoreApplication, QSettings, QCommandLineParser, QCommandLineOption

from treepruner.config import SETTINGS_STATE_KEY
from treepruner.logging_config import add_logging_options, setup_logging_from_parser
from treepruner.model.codec import decode, state_from_query
from treepruner.model.state import TreeSession, TreeState
from treepruner.view.main_window import MainWindow, VISIBLE_APP_NAME

logger = logging.getLogger(__name__)

ORG_ID = "treepruner"
APP_ID = "treepruner"


def create_app() -> QApplication:
    """Create and configure the QApplication instance."""
    os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")

    QCoreApplication.setOrganizationName(ORG_ID)
    QCoreApplication.setApplicationName(APP_ID)
    QSettings.setDefaultFormat(QSettings.Format.IniFormat)

    app = QApplication(sys.argv)
    app.setApplicationDisplayName(VISIBLE_APP_NAME)
    return app


def resolve_initial_state(app: QApplication) -> TreeState:
    parser = QCommandLineParser()
    parser.setApplicationDescription("Procedural tree generator with pruning.")
    parser.addHelpOption()
    state_option = QCommandLineOption(
        ["s", "state"], "Tree state '<seed>_p<ids>' or a link containing '?state=...'.", "state"
    )
    parser.addOption(state_option)
    logging_options = add_logging_options(parser)
    parser.process(app)

    setup_logging_from_parser(parser, logging_options)

    raw: Optional[str] = None
    if parser.isSet(state_option):
        raw = parser.value(state_option)
        if "?" in raw:
            raw = state_from_query(raw)
        logger.info(f"Using state from the command line: {raw}")
    else:
        stored = QSettings().value(SETTINGS_STATE_KEY, "", type=str)
        if stored:
            raw = stored
            logger.info(f"Restoring last state: {raw}")

    seed, pruned_ids = decode(raw)
    return TreeState(seed=seed, pruned_ids=pruned_ids)


def main() -> int:
    """Main entry point for the application."""
    app = create_app()
    initial_state = resolve_initial_state(app)

    session = TreeSession()
    window = MainWindow(session, initial_state)
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
