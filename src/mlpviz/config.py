"""
Configuration
=============
Default constants and the training configuration object.

Everything a training run needs is supplied at construction time through a
TrainingConfig. There is no runtime reconfiguration: the GUI builds a new
run from the config when the user resets.

Exports:
    TrainingConfig: Dataclass with the architecture and the trainer settings.
    DEFAULT_* constants.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import math
from typing import Optional

from mlpviz.errors import InvalidConfig
from mlpviz.nn.activation import ActivationKind

logger = logging.getLogger(__name__)

# Global Constants
DEFAULT_LAYER_SIZES: tuple[int, ...] = (2, 2, 1)
DEFAULT_EPS: float = 1e-1
DEFAULT_LEARNING_RATE: float = 1e-1
DEFAULT_SNAPSHOT_EVERY: int = 100
DEFAULT_LOG_EVERY: int = 1000
DEFAULT_INIT_RANGE: tuple[float, float] = (-1.0, 1.0)
DEFAULT_IMAGE_SIZE: int = 28  # side of the exported prediction image in pixels
RENDER_FPS: int = 60


@dataclass(frozen=True)
class TrainingConfig:
    """
    Architecture and trainer settings of one training run.

    Attributes:
        layer_sizes: Width of every layer, input first.
        eps: Finite-difference probe step.
        learning_rate: Scale of the gradient-descent update.
        snapshot_every: Publish a snapshot every this many epochs.
        seed: Seed for the initial weights. None means fresh entropy on every run.
        init_low: Lower bound of the initial weights.
        init_high: Upper bound of the initial weights.
        max_epochs: Stop after this many epochs. None trains until stopped.
        log_every: Log the cost every this many epochs.
        activation: Activation used by every layer.
    """
    layer_sizes: tuple[int, ...] = DEFAULT_LAYER_SIZES
    eps: float = DEFAULT_EPS
    learning_rate: float = DEFAULT_LEARNING_RATE
    snapshot_every: int = DEFAULT_SNAPSHOT_EVERY
    seed: Optional[int] = None
    init_low: float = DEFAULT_INIT_RANGE[0]
    init_high: float = DEFAULT_INIT_RANGE[1]
    max_epochs: Optional[int] = None
    log_every: int = DEFAULT_LOG_EVERY
    activation: ActivationKind = field(default=ActivationKind.SIGMOID)

    def __post_init__(self) -> None:
        object.__setattr__(self, "layer_sizes", tuple(int(s) for s in self.layer_sizes))
        object.__setattr__(self, "activation", ActivationKind(self.activation))

    def validate(self) -> None:
        """
        Check every setting.

        Raises:
            InvalidConfig: On the first invalid setting found.
        """
        if len(self.layer_sizes) < 2 or any(s < 1 for s in self.layer_sizes):
            raise InvalidConfig(f"layer_sizes must hold at least 2 positive integers, got {self.layer_sizes}.")
        validate_trainer_settings(self.eps, self.learning_rate)
        if self.snapshot_every < 1:
            raise InvalidConfig(f"snapshot_every must be at least 1, got {self.snapshot_every}.")
        if self.log_every < 1:
            raise InvalidConfig(f"log_every must be at least 1, got {self.log_every}.")
        if self.max_epochs is not None and self.max_epochs < 0:
            raise InvalidConfig(f"max_epochs must not be negative, got {self.max_epochs}.")
        if not self.init_low <= self.init_high:
            raise InvalidConfig(f"init_low ({self.init_low}) must not exceed init_high ({self.init_high}).")

    def with_changes(self, **changes) -> TrainingConfig:
        return replace(self, **changes)


def validate_trainer_settings(eps: float, learning_rate: float) -> None:
    """
    Raises:
        InvalidConfig: If eps is not a finite positive number or learning_rate is negative or not finite.
    """
    if not math.isfinite(eps) or eps <= 0.0:
        raise InvalidConfig(f"eps must be a finite positive number, got {eps}.")
    if not math.isfinite(learning_rate) or learning_rate < 0.0:
        raise InvalidConfig(f"learning_rate must be finite and non-negative, got {learning_rate}.")
