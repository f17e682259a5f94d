"""
Background Workers (Threading)
==============================
This module contains the QThread subclass that runs training.

Why is this file needed?
------------------------
1. Responsiveness: If we train on the main thread, the GUI freezes, and the
   frame rate would cap the number of epochs per second. The worker pushes
   the training loop to a background thread.
2. Ownership: The worker builds the Network inside its own thread and never
   hands it out. The GUI only reads snapshots from the shared SnapshotSlot.
3. Signals: Errors and completion are reported to the GUI with Qt Signals.

Classes:
    TrainingWorker: Runs the finite-difference training loop.
"""
from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QThread, Signal

from mlpviz.config import TrainingConfig
from mlpviz.nn.dataset import Dataset
from mlpviz.nn.network import Network
from mlpviz.training.finite_difference import FiniteDifferenceTrainer
from mlpviz.training.loop import TrainingLoop
from mlpviz.training.snapshot import SnapshotSlot, TrainingSnapshot

logger = logging.getLogger(__name__)


def build_training_loop(
    config: TrainingConfig,
    dataset: Dataset,
    slot: SnapshotSlot,
    network: Optional[Network] = None,
    start_epoch: int = 0,
) -> TrainingLoop:
    """
    Assemble network, trainer and loop from a configuration.

    Args:
        config: Validated before anything is built.
        dataset: Samples to train on.
        slot: Where snapshots are published.
        network: Start from these parameters instead of a fresh random network.
            The loop takes ownership of it.
        start_epoch: Epoch counter to resume from.

    Raises:
        InvalidConfig: If the configuration is invalid.
        ShapeMismatch: If the network does not fit the dataset.
    """
    config.validate()
    if network is None:
        network = Network(
            config.layer_sizes,
            activation=config.activation,
            low=config.init_low,
            high=config.init_high,
            seed=config.seed,
        )
    trainer = FiniteDifferenceTrainer(eps=config.eps, learning_rate=config.learning_rate)
    # Fails early with ShapeMismatch when the architecture does not fit the data
    trainer.cost_fn(network, dataset)

    return TrainingLoop(
        network=network,
        dataset=dataset,
        trainer=trainer,
        slot=slot,
        snapshot_every=config.snapshot_every,
        max_epochs=config.max_epochs,
        log_every=config.log_every,
        start_epoch=start_epoch,
    )


class TrainingWorker(QThread):
    # Signals to update the UI from the background
    snapshot_published = Signal(int, float)  # (epoch, cost)
    error_occurred = Signal(str)
    training_stopped = Signal(int)  # final epoch

    def __init__(
        self,
        config: TrainingConfig,
        dataset: Dataset,
        slot: SnapshotSlot,
        initial_network: Optional[Network] = None,
        start_epoch: int = 0,
    ) -> None:
        super().__init__()
        self.config = config
        self.dataset = dataset
        self.slot = slot
        self.start_epoch = start_epoch
        self._initial_network = initial_network
        self._loop: Optional[TrainingLoop] = None
        self._stop_requested = False

    def run(self) -> None:
        try:
            logger.info("Starting training in background thread...")

            loop = build_training_loop(
                config=self.config,
                dataset=self.dataset,
                slot=self.slot,
                network=self._initial_network,
                start_epoch=self.start_epoch,
            )
            # Ownership moves to the loop
            self._initial_network = None
            loop.on_snapshot = self._on_snapshot
            self._loop = loop
            if self._stop_requested:
                loop.stop()

            final = loop.run()
            self.training_stopped.emit(final.epoch)

        except Exception as e:
            logger.exception(f"Error in TrainingWorker: {e}")
            self.error_occurred.emit(str(e))

    def _on_snapshot(self, snapshot: TrainingSnapshot) -> None:
        self.snapshot_published.emit(snapshot.epoch, snapshot.cost)

    def stop(self) -> None:
        """Request a cooperative stop at the next epoch boundary."""
        self._stop_requested = True
        if self._loop is not None:
            self._loop.stop()
