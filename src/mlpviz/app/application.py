from PySide6.QtWidgets import QApplication
from PySide6.QtCore import QCoreApplication

import sys
import os
from typing import Optional, Sequence

APP_ID = "mlpviz"
VISIBLE_APP_NAME = "Neural Network Visualization"


def create_app(argv: Optional[Sequence[str]] = None) -> QApplication:
    """Create and configure the QApplication instance (or return the running one)."""
    existing = QApplication.instance()
    if existing is not None:
        return existing

    os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")

    QCoreApplication.setApplicationName(APP_ID)

    app = QApplication(list(argv) if argv is not None else sys.argv)
    app.setApplicationDisplayName(VISIBLE_APP_NAME)

    return app
