"""
Finite-Difference Trainer
=========================
Gradient descent without backpropagation.

Every parameter is nudged by `eps`, the cost is measured again and the
difference quotient is taken as that parameter's partial derivative. This
costs one extra cost evaluation per parameter and per step, which is fine for
the small networks this project trains.

Note: This module is pure NumPy and must NOT import PySide6.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Protocol

import numpy as np

from mlpviz.config import DEFAULT_EPS, DEFAULT_LEARNING_RATE, validate_trainer_settings
from mlpviz.nn.cost import cost

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class Parametrized(Protocol):
    """Anything with flat parameter addressing, a Network in practice."""

    def total_parameter_count(self) -> int: ...

    def get_param(self, index: int) -> float: ...

    def set_param(self, index: int, value: float) -> None: ...


CostFunction = Callable[[Any, Any], float]


class FiniteDifferenceTrainer:
    """
    One-sided finite-difference gradient estimate plus a gradient-descent update.
    """

    def __init__(
        self,
        eps: float = DEFAULT_EPS,
        learning_rate: float = DEFAULT_LEARNING_RATE,
        cost_fn: CostFunction = cost,
    ) -> None:
        """
        Args:
            eps: Probe step added to each parameter.
            learning_rate: Scale of the update.
            cost_fn: `cost_fn(net, dataset) -> float`. Defaults to the mean squared error.

        Raises:
            InvalidConfig: If eps is not positive or learning_rate is negative.
        """
        validate_trainer_settings(eps, learning_rate)
        self.eps = float(eps)
        self.learning_rate = float(learning_rate)
        self.cost_fn = cost_fn

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(eps={self.eps}, learning_rate={self.learning_rate})"

    def gradient(self, net: Parametrized, dataset: Any) -> tuple[float, npt.NDArray[np.float64]]:
        """
        Estimate the gradient of the cost with respect to every parameter.

        The network is left with exactly the parameters it had on entry.

        Returns:
            Tuple of the unperturbed cost and the gradient, indexed like the flat parameters.
        """
        base_cost = self.cost_fn(net, dataset)
        count = net.total_parameter_count()
        grad = np.empty(count, dtype=np.float64)

        for i in range(count):
            original = net.get_param(i)
            net.set_param(i, original + self.eps)
            try:
                perturbed_cost = self.cost_fn(net, dataset)
            finally:
                net.set_param(i, original)
            grad[i] = (perturbed_cost - base_cost) / self.eps

        return base_cost, grad

    def apply(self, net: Parametrized, grad: npt.NDArray[np.float64]) -> None:
        """Move every parameter against its gradient, scaled by the learning rate."""
        for i in range(net.total_parameter_count()):
            net.set_param(i, net.get_param(i) - self.learning_rate * grad[i])

    def step(self, net: Parametrized, dataset: Any) -> float:
        """
        One training step: gradient estimate followed by the update.

        Returns:
            The cost before the update.
        """
        base_cost, grad = self.gradient(net, dataset)
        self.apply(net, grad)
        return base_cost
