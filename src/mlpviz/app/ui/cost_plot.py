"""Live plot of the cost against the epoch."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import pyqtgraph as pg
from pyqtgraph.exporters import ImageExporter

if TYPE_CHECKING:
    from PySide6.QtWidgets import QWidget

    from mlpviz.training.snapshot import TrainingSnapshot

logger = logging.getLogger(__name__)


class CostHistory:
    """
    Display-side record of (epoch, cost) pairs.

    Snapshots can be seen more than once and arrive at irregular intervals.
    A point is only added for an epoch newer than the last one recorded.
    """

    def __init__(self) -> None:
        self.epochs: list[int] = []
        self.costs: list[float] = []

    def __len__(self) -> int:
        return len(self.epochs)

    @property
    def last_epoch(self) -> int:
        return self.epochs[-1] if self.epochs else -1

    def add(self, epoch: int, cost: float) -> bool:
        """Record a point. Returns False when the epoch was already recorded."""
        if epoch <= self.last_epoch:
            return False
        self.epochs.append(int(epoch))
        self.costs.append(float(cost))
        return True

    def clear(self) -> None:
        self.epochs.clear()
        self.costs.clear()


class CostPlotWidget(pg.PlotWidget):
    """pyqtgraph plot fed from training snapshots."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.history = CostHistory()

        self.setBackground('w')
        self.showGrid(x=True, y=True, alpha=0.3)
        self.setLabel('bottom', 'Epoch', color='black')
        self.setLabel('left', 'Cost', color='black')
        self.setTitle('Cost', color='black', size='12pt')
        for axis in ('bottom', 'left'):
            self.getAxis(axis).setPen('k')
            self.getAxis(axis).setTextPen('k')

        self.curve = self.plot([], [], pen=pg.mkPen(color='#1f77b4', width=2))

    def update_from_snapshot(self, snapshot: TrainingSnapshot) -> None:
        if self.history.add(snapshot.epoch, snapshot.cost):
            self.curve.setData(
                np.asarray(self.history.epochs, dtype=np.float64),
                np.asarray(self.history.costs, dtype=np.float64),
            )

    def set_log_scale(self, enabled: bool) -> None:
        self.setLogMode(x=False, y=enabled)

    def reset(self) -> None:
        self.history.clear()
        self.curve.setData([], [])

    def export_image(self, file_path: str) -> None:
        exporter = ImageExporter(self.plotItem)
        exporter.parameters()['width'] = 1920
        exporter.export(file_path)
        logger.info(f"Cost plot exported to {file_path}")
