"""
Image Datasets
==============
Teach a network to reproduce a grayscale picture.

Each pixel becomes one sample: the input is its normalized position
(x / width, y / height) and the target is its gray level in [0, 1]. After
training, `render_prediction` evaluates the network on a square grid and
paints the outputs back into an image, at any resolution.
"""
from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import numpy as np
from PySide6.QtGui import QImage

from mlpviz.config import DEFAULT_IMAGE_SIZE
from mlpviz.errors import InvalidShape
from mlpviz.nn.dataset import Dataset
from mlpviz.nn.matrix import Matrix

if TYPE_CHECKING:
    import numpy.typing as npt

    from mlpviz.nn.network import Network

logger = logging.getLogger(__name__)


def _gray_levels(image: QImage) -> npt.NDArray[np.float64]:
    """Gray level of every pixel as a (height x width) array in [0, 1]."""
    gray = image.convertToFormat(QImage.Format.Format_Grayscale8)
    width, height = gray.width(), gray.height()
    # Scanlines are padded to 32-bit boundaries
    buffer = np.frombuffer(gray.constBits(), dtype=np.uint8, count=gray.sizeInBytes())
    rows = buffer.reshape(height, gray.bytesPerLine())[:, :width]
    return rows.astype(np.float64) / 255.0


def dataset_from_image(path: str) -> Dataset:
    """
    Build a dataset with one sample per pixel of the image at `path`.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be decoded as an image.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Image not found: {path}")

    image = QImage(path)
    if image.isNull():
        raise ValueError(f"Could not read image: {path}")

    levels = _gray_levels(image)
    height, width = levels.shape
    ys, xs = np.mgrid[0:height, 0:width]
    inputs = np.column_stack((xs.ravel() / width, ys.ravel() / height))
    targets = levels.reshape(-1, 1)

    logger.info(f"Loaded {width}x{height} image from {path} ({width * height} samples).")
    return Dataset.from_arrays(inputs, targets)


def render_prediction(net: Network, size: int = DEFAULT_IMAGE_SIZE) -> QImage:
    """
    Evaluate a 2-input, 1-output network on a size x size grid.

    Raises:
        InvalidShape: If `size` is below 1 or the network is not 2 -> 1.
    """
    if size < 1:
        raise InvalidShape(f"Image size must be positive, got {size}.")
    if net.input_size != 2 or net.output_size != 1:
        raise InvalidShape(f"Only 2-input, 1-output networks can be rendered, got {net.layer_sizes}.")

    ys, xs = np.mgrid[0:size, 0:size]
    grid = Matrix.from_array(np.column_stack((xs.ravel() / size, ys.ravel() / size)))
    output = net.forward(grid).data.reshape(size, size)
    buffer = np.clip(output * 255.0, 0.0, 255.0).astype(np.uint8).tobytes()

    image = QImage(buffer, size, size, size, QImage.Format.Format_Grayscale8)
    # QImage does not own `buffer`; detach before it goes away
    return image.copy()


def export_prediction(net: Network, path: str, size: int = DEFAULT_IMAGE_SIZE) -> None:
    """Render the network and save it as an image file (format from the extension)."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    image = render_prediction(net, size)
    if not image.save(path):
        raise OSError(f"Could not write image: {path}")
    logger.info(f"Prediction image ({size}x{size}) saved to: {path}")
