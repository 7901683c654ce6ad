"""Checkform template editor - application entry point."""

from __future__ import annotations

import sys


def main() -> int:
    """Application entry point.

    Returns:
        Exit code, 0 on normal exit
    """
    from PyQt6.QtWidgets import QApplication

    from checkform.app import Application
    from checkform.utils.constants import APP_AUTHOR, APP_NAME, APP_VERSION
    from checkform.utils.exceptions import ConfigError
    from checkform.utils.logger import setup_logger

    logger = setup_logger(__name__)
    logger.info(f"Starting {APP_NAME} {APP_VERSION}")

    qt_app = QApplication(sys.argv)
    qt_app.setApplicationName(APP_NAME)
    qt_app.setApplicationVersion(APP_VERSION)
    qt_app.setOrganizationName(APP_AUTHOR)

    app = Application()
    try:
        app.initialize()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    try:
        app.show_main_window()
        exit_code = qt_app.exec()
    except Exception as e:
        logger.exception(f"Unhandled error: {e}")
        return 1
    finally:
        app.cleanup()

    logger.info(f"Exited with code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
