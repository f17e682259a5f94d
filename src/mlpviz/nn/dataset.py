from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator, Sequence

import numpy as np

from mlpviz.errors import InvalidShape
from mlpviz.nn.matrix import Matrix

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class Sample:
    """One training pair: a (1 x in) input and its (1 x out) expected output."""
    input: Matrix
    expected_output: Matrix

    def __post_init__(self) -> None:
        if self.input.rows != 1 or self.expected_output.rows != 1:
            raise InvalidShape(
                f"Sample input and output must be single rows, got {self.input.shape} and {self.expected_output.shape}."
            )


@dataclass(frozen=True)
class Dataset:
    """
    Immutable ordered sequence of samples.

    The stacked `inputs` (n x in) and `targets` (n x out) matrices are built
    once so a whole-dataset pass is a single forward call.
    """
    samples: tuple[Sample, ...]
    inputs: Matrix = field(init=False, repr=False, compare=False)
    targets: Matrix = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        samples = tuple(self.samples)
        if not samples:
            raise InvalidShape("A dataset needs at least one sample.")

        in_dim = samples[0].input.cols
        out_dim = samples[0].expected_output.cols
        for i, sample in enumerate(samples):
            if sample.input.cols != in_dim or sample.expected_output.cols != out_dim:
                raise InvalidShape(
                    f"Sample {i} has shape {sample.input.cols}->{sample.expected_output.cols}, "
                    f"expected {in_dim}->{out_dim}."
                )

        inputs = np.vstack([s.input.data for s in samples])
        targets = np.vstack([s.expected_output.data for s in samples])
        inputs.setflags(write=False)
        targets.setflags(write=False)

        # frozen dataclass: bypass __setattr__ for the derived fields
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "inputs", Matrix(len(samples), in_dim, inputs))
        object.__setattr__(self, "targets", Matrix(len(samples), out_dim, targets))

    @classmethod
    def from_arrays(cls, inputs: npt.ArrayLike, targets: npt.ArrayLike) -> Dataset:
        """Build a dataset from two 2-D arrays with one sample per row."""
        inputs = np.atleast_2d(np.asarray(inputs, dtype=np.float64))
        targets = np.atleast_2d(np.asarray(targets, dtype=np.float64))
        if inputs.shape[0] != targets.shape[0]:
            raise InvalidShape(f"Got {inputs.shape[0]} inputs but {targets.shape[0]} targets.")
        return cls(tuple(
            Sample(Matrix.from_rows([x]), Matrix.from_rows([y]))
            for x, y in zip(inputs, targets)
        ))

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[Sequence[float], Sequence[float]]]) -> Dataset:
        # Per pair, so ragged input widths surface as InvalidShape
        return cls(tuple(
            Sample(Matrix.from_rows([x]), Matrix.from_rows([y]))
            for x, y in pairs
        ))

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    def __getitem__(self, index: int) -> Sample:
        return self.samples[index]

    @property
    def input_size(self) -> int:
        return self.inputs.cols

    @property
    def output_size(self) -> int:
        return self.targets.cols


def xor_dataset() -> Dataset:
    """The XOR truth table."""
    return Dataset.from_pairs([
        ((0.0, 0.0), (0.0,)),
        ((0.0, 1.0), (1.0,)),
        ((1.0, 0.0), (1.0,)),
        ((1.0, 1.0), (0.0,)),
    ])
