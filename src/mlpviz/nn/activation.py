from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np
import scipy as sp

if TYPE_CHECKING:
    import numpy.typing as npt


class ActivationKind(StrEnum):
    """
    The closed set of activation functions a layer can use.

    The value is the stable name written to weight files.
    """
    SIGMOID = "sigmoid"
    TANH = "tanh"
    RELU = "relu"

    def apply_in_place(self, values: npt.NDArray[np.float64]) -> None:
        """
        Apply the activation elementwise, overwriting `values`.

        Args:
            values: Array of pre-activations. Modified in place.
        """
        if self is ActivationKind.SIGMOID:
            # 1 / (1 + e^-x) without overflow warnings for large |x|
            sp.special.expit(values, out=values)
        elif self is ActivationKind.TANH:
            np.tanh(values, out=values)
        elif self is ActivationKind.RELU:
            np.maximum(values, 0.0, out=values)
        else:
            raise ValueError(f"Unsupported activation: {self!r}")
