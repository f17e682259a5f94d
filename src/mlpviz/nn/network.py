"""
Feedforward Network
===================
An ordered stack of fully connected layers.

All trainable parameters of a network live in ONE flat float64 buffer. Each
layer's weight and bias matrices are views into that buffer, laid out in layer
order, weights before biases, each row-major. The flat index of a parameter is
therefore its position in the buffer, which is what the finite-difference
trainer uses to sweep every parameter without knowing about layers.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

import numpy as np

from mlpviz.errors import InvalidShape, OutOfBounds, ShapeMismatch
from mlpviz.nn.activation import ActivationKind
from mlpviz.nn.matrix import Matrix, multiply

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Layer:
    """One affine transform followed by an activation."""
    weights: Matrix  # (out_dim x in_dim)
    biases: Matrix  # (out_dim x 1)
    activation: ActivationKind = ActivationKind.SIGMOID

    @property
    def in_dim(self) -> int:
        return self.weights.cols

    @property
    def out_dim(self) -> int:
        return self.weights.rows

    @property
    def parameter_count(self) -> int:
        return self.weights.size + self.biases.size

    def frozen_copy(self) -> Layer:
        return Layer(self.weights.frozen_copy(), self.biases.frozen_copy(), self.activation)


class Network:
    """
    Multilayer perceptron with a flat parameter buffer.
    """

    def __init__(
        self,
        layer_sizes: Sequence[int],
        activation: ActivationKind = ActivationKind.SIGMOID,
        low: float = -1.0,
        high: float = 1.0,
        seed: Optional[int] = None,
    ) -> None:
        """
        Build the layers and randomize every weight and bias.

        Args:
            layer_sizes: Width of every layer, input first, e.g. [2, 2, 1].
            activation: Activation used by every layer.
            low: Lower bound of the initial uniform distribution.
            high: Upper bound of the initial uniform distribution.
            seed: Seed for the initial parameters. None draws fresh entropy.

        Raises:
            InvalidShape: If fewer than two sizes are given or a size is not positive.
        """
        sizes = [int(size) for size in layer_sizes]
        if len(sizes) < 2:
            raise InvalidShape(f"A network needs at least 2 layer sizes, got {len(sizes)}.")
        if any(size < 1 for size in sizes):
            raise InvalidShape(f"Layer sizes must be positive, got {sizes}.")

        self._allocate(
            shapes=list(zip(sizes[1:], sizes[:-1])),
            activations=[ActivationKind(activation)] * (len(sizes) - 1),
        )
        self.randomize(low, high, seed=seed)

    @classmethod
    def from_layers(cls, layers: Iterable[Layer]) -> Network:
        """
        Build a network that owns copies of the given layers' parameters.

        Raises:
            InvalidShape: If no layer is given.
            ShapeMismatch: If a layer's input width differs from the previous layer's output width.
        """
        layers = list(layers)
        if not layers:
            raise InvalidShape("A network needs at least one layer.")

        for i, (prev, layer) in enumerate(zip(layers, layers[1:]), start=1):
            if prev.out_dim != layer.in_dim:
                raise ShapeMismatch(
                    f"Layer {i} expects {layer.in_dim} inputs but layer {i - 1} has {prev.out_dim} outputs."
                )
        for layer in layers:
            if layer.biases.shape != (layer.out_dim, 1):
                raise ShapeMismatch(
                    f"Bias of shape {layer.biases.shape} does not fit {layer.out_dim} outputs."
                )

        net = cls.__new__(cls)
        net._allocate(
            shapes=[(layer.out_dim, layer.in_dim) for layer in layers],
            activations=[layer.activation for layer in layers],
        )
        for own, src in zip(net.layers, layers):
            own.weights.data[...] = src.weights.data
            own.biases.data[...] = src.biases.data
        return net

    def _allocate(self, shapes: list[tuple[int, int]], activations: list[ActivationKind]) -> None:
        """Create the flat buffer and the per-layer views into it."""
        count = sum(out_dim * in_dim + out_dim for out_dim, in_dim in shapes)
        self._params: npt.NDArray[np.float64] = np.zeros(count, dtype=np.float64)
        self.layers: list[Layer] = []

        offset = 0
        for (out_dim, in_dim), activation in zip(shapes, activations):
            w_size = out_dim * in_dim
            weights = Matrix(out_dim, in_dim, self._params[offset:offset + w_size].reshape(out_dim, in_dim))
            offset += w_size
            biases = Matrix(out_dim, 1, self._params[offset:offset + out_dim].reshape(out_dim, 1))
            offset += out_dim
            self.layers.append(Layer(weights, biases, activation))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(layer_sizes={self.layer_sizes})"

    @property
    def layer_sizes(self) -> list[int]:
        return [self.layers[0].in_dim] + [layer.out_dim for layer in self.layers]

    @property
    def input_size(self) -> int:
        return self.layers[0].in_dim

    @property
    def output_size(self) -> int:
        return self.layers[-1].out_dim

    def randomize(self, low: float = -1.0, high: float = 1.0, seed: Optional[int] = None) -> None:
        """Re-draw every weight and bias uniformly from [low, high]."""
        rng = np.random.default_rng(seed)
        for layer in self.layers:
            layer.weights.randomize(low, high, rng)
            layer.biases.randomize(low, high, rng)
        logger.debug(f"Randomized {self.total_parameter_count()} parameters in [{low}, {high}] (seed={seed}).")

    # --- FORWARD PASS ---

    def activations(self, inputs: Matrix) -> list[Matrix]:
        """
        Run the forward pass and keep every layer's output.

        Args:
            inputs: Matrix of shape (n_samples x input_size), one sample per row.

        Raises:
            ShapeMismatch: If `inputs.cols` differs from the first layer's input width.

        Returns:
            List of (n_samples x width) matrices, the inputs first and the network output last.
        """
        outputs = [inputs.copy()]
        self._propagate(inputs, on_layer=lambda a: outputs.append(a.transpose()))
        return outputs

    def forward(self, inputs: Matrix) -> Matrix:
        """
        Compute the network output for one or more samples.

        Args:
            inputs: Matrix of shape (n_samples x input_size); (1 x input_size) for a single sample.

        Raises:
            ShapeMismatch: If `inputs.cols` differs from the first layer's input width.

        Returns:
            Matrix of shape (n_samples x output_size).
        """
        return self._propagate(inputs).transpose()

    def _propagate(self, inputs: Matrix, on_layer=None) -> Matrix:
        """Column activations (width x n_samples) of the last layer."""
        if inputs.cols != self.input_size:
            raise ShapeMismatch(f"Network expects {self.input_size} inputs, got {inputs.cols}.")

        a = inputs.transpose()
        for layer in self.layers:
            a = multiply(layer.weights, a)
            a.add_in_place(layer.biases, broadcast=True)
            a.apply_activation(layer.activation)
            if on_layer is not None:
                on_layer(a)
        return a

    # --- FLAT PARAMETER ADDRESSING ---

    def total_parameter_count(self) -> int:
        return int(self._params.size)

    def _check_param_index(self, index: int) -> None:
        if not 0 <= index < self._params.size:
            raise OutOfBounds(f"Parameter index {index} out of range (0..{self._params.size - 1}).")

    def get_param(self, index: int) -> float:
        self._check_param_index(index)
        return float(self._params[index])

    def set_param(self, index: int, value: float) -> None:
        self._check_param_index(index)
        self._params[index] = value

    def parameters(self) -> npt.NDArray[np.float64]:
        """Copy of the flat parameter buffer."""
        return self._params.copy()
