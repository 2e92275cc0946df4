"""Allow running ChronoStack as a module: python -m chronostack."""

import logging
import sys

from PyQt6.QtWidgets import QApplication

from .database.db import init_db
from .app import ChronoStackApp


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    init_db()

    app = QApplication(sys.argv)
    app.setApplicationName("ChronoStack")
    app.setOrganizationName("ChronoStack")

    window = ChronoStackApp()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
