"""
Input/Output Manager (HDF5)
Handles saving and loading trained networks to .h5 files.

File layout:
    attrs: version, layer_sizes
    /layers/<i>/weights   (out x in) float64
    /layers/<i>/biases    (out x 1) float64
    /layers/<i>.attrs["activation"]
"""
import logging
import os
from importlib.metadata import version, PackageNotFoundError
from typing import Optional

import h5py
import numpy as np

from mlpviz.nn.activation import ActivationKind
from mlpviz.nn.matrix import Matrix
from mlpviz.nn.network import Layer, Network
from mlpviz.training.snapshot import TrainingSnapshot

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("mlpviz")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


class IOManager:

    @staticmethod
    def save_network(net: Network, filepath: str, epoch: Optional[int] = None, cost: Optional[float] = None) -> None:
        """
        Write every layer's shape, weights, biases and activation to an HDF5 file.

        Args:
            net: Network to save.
            filepath: Destination path, overwritten if it exists.
            epoch: Optional training epoch stored as metadata.
            cost: Optional cost stored as metadata.
        """
        logger.info(f"Saving network to: {filepath}")
        try:
            with h5py.File(filepath, "w") as f:
                f.attrs["version"] = APP_VERSION
                f.attrs["layer_sizes"] = np.array(net.layer_sizes, dtype=np.int64)
                if epoch is not None:
                    f.attrs["epoch"] = int(epoch)
                if cost is not None:
                    f.attrs["cost"] = float(cost)

                grp_layers = f.create_group("layers")
                for i, layer in enumerate(net.layers):
                    grp = grp_layers.create_group(str(i))
                    grp.attrs["activation"] = layer.activation.value
                    grp.create_dataset("weights", data=layer.weights.data)
                    grp.create_dataset("biases", data=layer.biases.data)

            logger.info(f"Network saved to: {filepath}")

        except Exception as e:
            logger.exception(f"Failed to save network: {e}")
            raise e

    @staticmethod
    def save_snapshot(snapshot: TrainingSnapshot, filepath: str) -> None:
        """Save the network captured in a snapshot, with its epoch and cost."""
        IOManager.save_network(snapshot.network(), filepath, epoch=snapshot.epoch, cost=snapshot.cost)

    @staticmethod
    def load_network(filepath: str) -> Network:
        """
        Rebuild a network from a file written by `save_network`.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not HDF5 or holds no layers.
            ShapeMismatch: If the stored layers do not chain.
        """
        logger.info(f"Loading network from: {filepath}")
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Network file not found: {filepath}")
        if not h5py.is_hdf5(filepath):
            msg = f"File '{filepath}' is not a valid HDF5 file."
            logger.error(msg)
            raise ValueError(msg)

        try:
            with h5py.File(filepath, "r") as f:
                if "layers" not in f or len(f["layers"]) == 0:
                    raise ValueError(f"File '{filepath}' contains no network layers.")

                grp_layers = f["layers"]
                layers = []
                # Group keys are strings, "10" must come after "9"
                for key in sorted(grp_layers.keys(), key=int):
                    grp = grp_layers[key]
                    activation = grp.attrs.get("activation", ActivationKind.SIGMOID.value)
                    if isinstance(activation, bytes):
                        activation = activation.decode("utf-8")
                    layers.append(Layer(
                        weights=Matrix.from_array(grp["weights"][()]),
                        biases=Matrix.from_array(grp["biases"][()]),
                        activation=ActivationKind(str(activation)),
                    ))

            net = Network.from_layers(layers)
            logger.info(f"Network {net.layer_sizes} loaded from: {filepath}")
            return net

        except Exception as e:
            logger.exception(f"Failed to load network: {e}")
            raise e
