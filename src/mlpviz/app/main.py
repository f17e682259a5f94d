"""
Application Initialization
==========================
Builds the dataset and configuration, creates the main window and starts the
Qt event loop.

Run with: python -m mlpviz [image]

Without an argument the network learns XOR. With an image path it learns to
reproduce that picture from pixel coordinates.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

import pyqtgraph as pg

from mlpviz.app.application import create_app
from mlpviz.app.ui.main_window import MainWindow
from mlpviz.config import TrainingConfig
from mlpviz.logging_config import setup_logging
from mlpviz.nn.dataset import Dataset, xor_dataset
from mlpviz.pre.images import dataset_from_image

logger = logging.getLogger(__name__)

pg.setConfigOption("background", "w")
pg.setConfigOption("foreground", "k")

# Wider network for images: two coordinates in, one gray level out
IMAGE_LAYER_SIZES = (2, 8, 8, 1)


def load_dataset(image_path: Optional[str]) -> tuple[Dataset, TrainingConfig]:
    if image_path is None:
        logger.info("No image path provided, training on XOR.")
        return xor_dataset(), TrainingConfig()
    return dataset_from_image(image_path), TrainingConfig(layer_sizes=IMAGE_LAYER_SIZES)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    argv = list(sys.argv if argv is None else argv)

    setup_logging(level=logging.INFO)

    app = create_app(argv)

    dataset, config = load_dataset(argv[1] if len(argv) > 1 else None)
    config.validate()

    win = MainWindow(config, dataset)
    win.show()
    win.start_training()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
