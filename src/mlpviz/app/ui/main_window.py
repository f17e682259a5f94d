"""
Main Window
===========
Hosts the training controls, the network diagram and the cost plot.

The window never touches the network being trained. A TrainingWorker owns
it on a background thread and publishes snapshots to a SnapshotSlot; a
QTimer running at display rate picks up the latest one and redraws.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QMainWindow, QSplitter, QWidget, QVBoxLayout, QLabel, QFormLayout, QToolBar,
    QStatusBar, QFileDialog, QMessageBox, QCheckBox, QGroupBox, QHBoxLayout, QPlainTextEdit
)

from mlpviz.app.application import VISIBLE_APP_NAME
from mlpviz.app.ui.cost_plot import CostPlotWidget
from mlpviz.app.ui.network_view import NetworkView
from mlpviz.config import RENDER_FPS, TrainingConfig
from mlpviz.controller.workers import TrainingWorker
from mlpviz.model.io import IOManager
from mlpviz.nn.cost import cost
from mlpviz.nn.dataset import Dataset
from mlpviz.nn.network import Network
from mlpviz.pre.images import export_prediction
from mlpviz.training.snapshot import SnapshotSlot, TrainingSnapshot

logger = logging.getLogger(__name__)

# Above this many samples the per-sample prediction list is not shown
MAX_LISTED_SAMPLES = 16


class MainWindow(QMainWindow):
    def __init__(self, config: TrainingConfig, dataset: Dataset) -> None:
        super().__init__()
        self.config = config
        self.dataset = dataset
        self.slot = SnapshotSlot()
        self.worker: Optional[TrainingWorker] = None

        # Parameters to resume from on the next start (a loaded file)
        self._pending_network: Optional[Network] = None
        self._pending_epoch = 0
        self._drawn: Optional[TrainingSnapshot] = None

        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1200, 700)

        self._build_toolbar()
        self._build_central()
        self.setStatusBar(QStatusBar(self))

        # Render timer, independent of the training speed
        self.render_timer = QTimer(self)
        self.render_timer.setInterval(max(1, 1000 // RENDER_FPS))
        self.render_timer.timeout.connect(self.render_latest)
        self.render_timer.start()

        self._update_actions()

    # --- UI CONSTRUCTION ---

    def _build_toolbar(self) -> None:
        tb = QToolBar("Training", self)
        tb.setMovable(False)
        self.addToolBar(tb)

        self.act_start = QAction("Start", self)
        self.act_start.triggered.connect(self.start_training)
        tb.addAction(self.act_start)

        self.act_stop = QAction("Stop", self)
        self.act_stop.triggered.connect(lambda: self.stop_training())
        tb.addAction(self.act_stop)

        self.act_reset = QAction("Reset", self)
        self.act_reset.setShortcut("R")
        self.act_reset.triggered.connect(self.reset_training)
        tb.addAction(self.act_reset)

        tb.addSeparator()

        self.act_save = QAction("Save weights...", self)
        self.act_save.triggered.connect(self.on_save_clicked)
        tb.addAction(self.act_save)

        self.act_load = QAction("Load weights...", self)
        self.act_load.triggered.connect(self.on_load_clicked)
        tb.addAction(self.act_load)

        self.act_export_image = QAction("Export prediction...", self)
        self.act_export_image.triggered.connect(self.on_export_prediction_clicked)
        tb.addAction(self.act_export_image)

        self.act_export_plot = QAction("Export cost plot...", self)
        self.act_export_plot.triggered.connect(self.on_export_plot_clicked)
        tb.addAction(self.act_export_plot)

    def _build_central(self) -> None:
        central = QWidget(self)
        v = QVBoxLayout(central)

        splitter = QSplitter(Qt.Horizontal, central)
        self.network_view = NetworkView(splitter)
        self.cost_plot = CostPlotWidget(splitter)
        splitter.addWidget(self.network_view)
        splitter.addWidget(self.cost_plot)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 1)
        v.addWidget(splitter, 1)

        bottom = QHBoxLayout()

        grp_info = QGroupBox("Training")
        form = QFormLayout(grp_info)
        self.lbl_epoch = QLabel("-")
        self.lbl_cost = QLabel("-")
        self.lbl_rate = QLabel(f"{self.config.learning_rate:g}")
        self.lbl_eps = QLabel(f"{self.config.eps:g}")
        self.lbl_time = QLabel("-")
        form.addRow("Epoch:", self.lbl_epoch)
        form.addRow("Cost:", self.lbl_cost)
        form.addRow("Learning rate:", self.lbl_rate)
        form.addRow("Eps:", self.lbl_eps)
        form.addRow("Training time:", self.lbl_time)

        self.chk_log = QCheckBox("Log scale")
        self.chk_log.toggled.connect(self.cost_plot.set_log_scale)
        form.addRow("", self.chk_log)
        bottom.addWidget(grp_info)

        grp_pred = QGroupBox("Predictions")
        l_pred = QVBoxLayout(grp_pred)
        self.txt_predictions = QPlainTextEdit()
        self.txt_predictions.setReadOnly(True)
        l_pred.addWidget(self.txt_predictions)
        bottom.addWidget(grp_pred, 1)

        v.addLayout(bottom)
        self.setCentralWidget(central)

    # --- TRAINING CONTROL ---

    def is_training(self) -> bool:
        return self.worker is not None and self.worker.isRunning()

    def start_training(self) -> None:
        if self.is_training():
            return

        network = self._pending_network
        start_epoch = self._pending_epoch
        if network is None:
            # Resume from the last state shown, if there is one
            latest = self.slot.latest()
            if latest is not None:
                network, start_epoch = latest.network(), latest.epoch
        self._pending_network = None

        self.worker = TrainingWorker(
            config=self.config,
            dataset=self.dataset,
            slot=self.slot,
            initial_network=network,
            start_epoch=start_epoch,
        )
        self.worker.error_occurred.connect(self.on_error)
        self.worker.finished.connect(self.on_worker_finished)
        self.worker.start()

        self.statusBar().showMessage("Training...")
        self._update_actions()

    def stop_training(self, wait: bool = False) -> None:
        if self.worker is None:
            return
        self.worker.stop()
        if wait:
            self.worker.wait()

    def reset_training(self) -> None:
        """Throw away the current run and start again from fresh random weights."""
        logger.info("Resetting training.")
        self.stop_training(wait=True)
        self.worker = None
        self._pending_network = None
        self._pending_epoch = 0
        self.slot.clear()
        self._drawn = None
        self.cost_plot.reset()
        self.network_view.reset()
        self.start_training()

    def on_worker_finished(self) -> None:
        # Draw the final snapshot even if the timer has not fired since
        self.render_latest()
        self.statusBar().showMessage("Training stopped.")
        self._update_actions()

    def on_error(self, msg: str) -> None:
        QMessageBox.critical(self, "Training Error", msg)

    def _update_actions(self) -> None:
        running = self.is_training()
        self.act_start.setEnabled(not running)
        self.act_stop.setEnabled(running)
        self.act_load.setEnabled(not running)
        self.act_export_image.setEnabled(
            self.dataset.input_size == 2 and self.dataset.output_size == 1
        )

    # --- RENDERING ---

    def render_latest(self) -> None:
        snapshot = self.slot.latest()
        if snapshot is None or snapshot is self._drawn:
            return
        self.draw_snapshot(snapshot)
        self._drawn = snapshot

    def draw_snapshot(self, snapshot: TrainingSnapshot) -> None:
        """Redraw everything from one snapshot. Safe to call repeatedly with the same one."""
        if self.config.max_epochs is not None:
            self.lbl_epoch.setText(f"{snapshot.epoch}/{self.config.max_epochs}")
        else:
            self.lbl_epoch.setText(str(snapshot.epoch))
        self.lbl_cost.setText(f"{snapshot.cost:.6f}")
        self.lbl_time.setText(f"{snapshot.elapsed:.1f} s")

        self.cost_plot.update_from_snapshot(snapshot)
        self.network_view.update_from_snapshot(snapshot)
        self._update_predictions(snapshot)

    def _update_predictions(self, snapshot: TrainingSnapshot) -> None:
        if len(self.dataset) > MAX_LISTED_SAMPLES:
            self.txt_predictions.setPlainText(f"{len(self.dataset)} samples")
            return

        outputs = snapshot.network().forward(self.dataset.inputs).data
        lines = []
        for sample, output in zip(self.dataset, outputs):
            x = np.array2string(sample.input.data[0], precision=2)
            y = np.array2string(output, precision=4)
            t = np.array2string(sample.expected_output.data[0], precision=2)
            lines.append(f"input: {x}  output: {y}  expected: {t}")
        self.txt_predictions.setPlainText("\n".join(lines))

    # --- FILES ---

    def on_save_clicked(self) -> None:
        snapshot = self.slot.latest()
        if snapshot is None:
            QMessageBox.warning(self, "Save Weights", "Nothing has been trained yet.")
            return

        file_path, _ = QFileDialog.getSaveFileName(self, "Save weights", "network.h5", "HDF5 (*.h5 *.hdf5)")
        if not file_path:
            return
        try:
            IOManager.save_snapshot(snapshot, file_path)
            self.statusBar().showMessage(f"Weights saved to {file_path} (epoch {snapshot.epoch}).")
        except Exception as e:
            QMessageBox.critical(self, "Save Error", str(e))

    def on_load_clicked(self) -> None:
        if self.is_training():
            return

        file_path, _ = QFileDialog.getOpenFileName(self, "Load weights", "", "HDF5 (*.h5 *.hdf5)")
        if not file_path:
            return
        try:
            network = IOManager.load_network(file_path)
            if network.input_size != self.dataset.input_size or network.output_size != self.dataset.output_size:
                raise ValueError(
                    f"Network {network.layer_sizes} does not fit the dataset "
                    f"({self.dataset.input_size} inputs, {self.dataset.output_size} outputs)."
                )
        except Exception as e:
            QMessageBox.critical(self, "Load Error", str(e))
            return

        self.config = self.config.with_changes(layer_sizes=tuple(network.layer_sizes))
        self.slot.clear()
        self.cost_plot.reset()
        self._drawn = None
        self._pending_network = network
        self._pending_epoch = 0

        # Show the loaded parameters straight away
        self.slot.publish(TrainingSnapshot.capture(network, epoch=0, cost=cost(network, self.dataset)))
        self.statusBar().showMessage(f"Weights loaded from {file_path}.")

    def on_export_prediction_clicked(self) -> None:
        snapshot = self.slot.latest()
        if snapshot is None:
            return
        file_path, _ = QFileDialog.getSaveFileName(self, "Export prediction", "out.png", "PNG (*.png)")
        if not file_path:
            return
        try:
            export_prediction(snapshot.network(), file_path)
            self.statusBar().showMessage(f"Prediction exported to {file_path}.")
        except Exception as e:
            logger.exception("Failed to export prediction image")
            QMessageBox.critical(self, "Export Error", str(e))

    def on_export_plot_clicked(self) -> None:
        file_path, _ = QFileDialog.getSaveFileName(self, "Export cost plot", "cost.png", "PNG (*.png)")
        if not file_path:
            return
        try:
            self.cost_plot.export_image(file_path)
        except Exception as e:
            logger.exception("Failed to export plot")
            QMessageBox.critical(self, "Export Error", str(e))

    def closeEvent(self, event) -> None:
        # Closing the window is the stop request for the training loop
        self.render_timer.stop()
        self.stop_training(wait=True)
        super().closeEvent(event)
