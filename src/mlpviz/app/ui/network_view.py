"""
Network Diagram
===============
Draws the layers of a snapshot as columns of neurons joined by edges.

Edges are colored by their weight and hidden neurons by their bias. Both are
squashed through a sigmoid and mapped from magenta (negative) to green
(positive). Input neurons are gray.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import numpy as np
import pyqtgraph as pg
import scipy as sp

if TYPE_CHECKING:
    import numpy.typing as npt
    from PySide6.QtWidgets import QWidget

    from mlpviz.training.snapshot import TrainingSnapshot

LOW_COLOR = (255, 0, 255)
HIGH_COLOR = (0, 255, 0)
INPUT_COLOR = (128, 128, 128)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def value_color(value: float) -> tuple[int, int, int]:
    """Map an unbounded parameter value to a color between LOW_COLOR and HIGH_COLOR."""
    t = float(sp.special.expit(value))
    return tuple(int(round(lerp(lo, hi, t))) for lo, hi in zip(LOW_COLOR, HIGH_COLOR))


def neuron_positions(layer_sizes: Sequence[int]) -> list[npt.NDArray[np.float64]]:
    """
    Position of every neuron in a unit square, one (n x 2) array per layer.

    Layers are spread evenly along x, neurons evenly along y, each centered in its slot.
    """
    n_layers = len(layer_sizes)
    positions = []
    for l, size in enumerate(layer_sizes):
        x = (l + 0.5) / n_layers
        ys = 1.0 - (np.arange(size) + 0.5) / size
        positions.append(np.column_stack((np.full(size, x), ys)))
    return positions


class NetworkView(pg.PlotWidget):
    """Diagram of the network in the latest snapshot."""

    NEURON_SIZE = 22
    EDGE_WIDTH = 2

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setBackground('w')
        self.hideAxis('bottom')
        self.hideAxis('left')
        self.setMouseEnabled(x=False, y=False)
        self.setMenuEnabled(False)
        self.setXRange(0.0, 1.0, padding=0.02)
        self.setYRange(0.0, 1.0, padding=0.05)

        self._layer_sizes: list[int] = []
        self._edges: list[pg.PlotCurveItem] = []
        self._neurons = pg.ScatterPlotItem(size=self.NEURON_SIZE, pen=pg.mkPen('k', width=1))
        self._neurons.setZValue(10)
        self.addItem(self._neurons)

    def _rebuild(self, layer_sizes: list[int]) -> None:
        """Create one curve per edge for a new architecture."""
        for item in self._edges:
            self.removeItem(item)
        self._edges = []

        self._positions = neuron_positions(layer_sizes)
        for src, dst in zip(self._positions, self._positions[1:]):
            # One item per (output j, input i) pair, in weight-matrix order
            for j in range(len(dst)):
                for i in range(len(src)):
                    item = pg.PlotCurveItem(
                        x=[src[i, 0], dst[j, 0]],
                        y=[src[i, 1], dst[j, 1]],
                    )
                    self.addItem(item)
                    self._edges.append(item)
        self._layer_sizes = list(layer_sizes)

    def update_from_snapshot(self, snapshot: TrainingSnapshot) -> None:
        layer_sizes = snapshot.layer_sizes
        if layer_sizes != self._layer_sizes:
            self._rebuild(layer_sizes)

        edge = 0
        for layer in snapshot.layers:
            for w in layer.weights.data.ravel():
                self._edges[edge].setPen(pg.mkPen(value_color(w), width=self.EDGE_WIDTH))
                edge += 1

        brushes = [pg.mkBrush(INPUT_COLOR)] * layer_sizes[0]
        for layer in snapshot.layers:
            brushes.extend(pg.mkBrush(value_color(b)) for b in layer.biases.data.ravel())

        points = np.vstack(self._positions)
        self._neurons.setData(pos=points, brush=brushes)

    def reset(self) -> None:
        for item in self._edges:
            self.removeItem(item)
        self._edges = []
        self._layer_sizes = []
        self._neurons.clear()
