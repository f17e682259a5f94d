from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from mlpviz.errors import ShapeMismatch

if TYPE_CHECKING:
    from mlpviz.nn.dataset import Dataset
    from mlpviz.nn.network import Network


def cost(net: Network, dataset: Dataset) -> float:
    """
    Mean squared error of the network over the whole dataset.

    For every sample the squared L2 distance between prediction and target is
    divided by the output width, and those values are averaged over samples.
    That is the mean of all squared errors.

    Args:
        net: Network to evaluate. Not modified.
        dataset: Training samples.

    Raises:
        ShapeMismatch: If the network's input or output width does not match the dataset.

    Returns:
        The cost as a Python float.
    """
    predicted = net.forward(dataset.inputs)
    if predicted.shape != dataset.targets.shape:
        raise ShapeMismatch(
            f"Network produces {predicted.cols} outputs but the dataset expects {dataset.targets.cols}."
        )
    diff = predicted.data - dataset.targets.data
    return float(np.mean(diff * diff))
