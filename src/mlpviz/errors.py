"""
Error Types
===========
Exceptions raised by the neural-network core.

All of them are argument-validation failures detected synchronously at the
call that violates an invariant. None of them are retried.
"""


class NetworkError(ValueError):
    """Base class for every error raised by the mlpviz core."""


class InvalidShape(NetworkError):
    """Bad construction-time dimensions (zero rows, too few layers, ...)."""


class ShapeMismatch(NetworkError):
    """Operand dimensions do not agree (matrix product, addition, forward pass)."""


class OutOfBounds(NetworkError, IndexError):
    """Element or parameter index outside the valid range."""


# Short name used by the matrix element accessors.
GetSet = OutOfBounds


class InvalidConfig(NetworkError):
    """Non-positive eps, negative learning rate or a similar bad setting."""
