"""Allow running Sandoro as a module: python -m sandoro."""

import argparse
import logging
import sys

from PyQt6.QtWidgets import QApplication

from .database.db import init_db
from .app import SandoroApp


def main() -> None:
    parser = argparse.ArgumentParser(prog="sandoro", description="Pomodoro / flowtime focus timer")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    args, qt_args = parser.parse_known_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    init_db()

    app = QApplication([sys.argv[0], *qt_args])
    app.setApplicationName("Sandoro")
    app.setOrganizationName("Sandoro")
    app.setQuitOnLastWindowClosed(False)

    window = SandoroApp()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
