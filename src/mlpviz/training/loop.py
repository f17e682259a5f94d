"""
Training Loop
=============
Drives the trainer epoch after epoch and publishes snapshots.

Why is this separate from the worker?
-------------------------------------
The loop is plain Python so it can run (and be tested) without a Qt event
loop. The QThread in `mlpviz.controller.workers` only hosts it.

State machine: IDLE -> RUNNING -> STOPPED. The loop leaves RUNNING when a stop
is requested (checked once per epoch), when `max_epochs` is reached, or when a
step raises. In the last case the exception propagates to the caller.

Note: This module should be pure Python/NumPy and should NOT import PySide6.
"""
from __future__ import annotations

from enum import Enum
import logging
import threading
import time
from typing import TYPE_CHECKING, Callable, Optional

from mlpviz.config import DEFAULT_LOG_EVERY, DEFAULT_SNAPSHOT_EVERY
from mlpviz.errors import InvalidConfig
from mlpviz.training.snapshot import SnapshotSlot, TrainingSnapshot

if TYPE_CHECKING:
    from mlpviz.nn.dataset import Dataset
    from mlpviz.nn.network import Network
    from mlpviz.training.finite_difference import FiniteDifferenceTrainer

logger = logging.getLogger(__name__)


class TrainingState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class TrainingLoop:
    """
    Repeated trainer steps over a fixed dataset with periodic snapshots.

    The loop owns `network` for as long as it runs. Other threads must only
    read the published snapshots from `slot`.
    """

    def __init__(
        self,
        network: Network,
        dataset: Dataset,
        trainer: FiniteDifferenceTrainer,
        slot: Optional[SnapshotSlot] = None,
        snapshot_every: int = DEFAULT_SNAPSHOT_EVERY,
        max_epochs: Optional[int] = None,
        log_every: int = DEFAULT_LOG_EVERY,
        on_snapshot: Optional[Callable[[TrainingSnapshot], None]] = None,
        start_epoch: int = 0,
    ) -> None:
        """
        Args:
            network: The live network. Trained in place.
            dataset: Samples used for every epoch.
            trainer: Performs one gradient step per epoch.
            slot: Where snapshots are published. A new slot is created when omitted.
            snapshot_every: Publish a snapshot every this many epochs.
            max_epochs: Stop after this many epochs. None trains until `stop()` is called.
            log_every: Log the cost every this many epochs.
            on_snapshot: Called on the training thread after every publish.
            start_epoch: Epoch counter of `network` when resuming an earlier run.

        Raises:
            InvalidConfig: If `snapshot_every` or `log_every` is below 1, or `max_epochs` is negative.
        """
        if snapshot_every < 1:
            raise InvalidConfig(f"snapshot_every must be at least 1, got {snapshot_every}.")
        if log_every < 1:
            raise InvalidConfig(f"log_every must be at least 1, got {log_every}.")
        if max_epochs is not None and max_epochs < 0:
            raise InvalidConfig(f"max_epochs must not be negative, got {max_epochs}.")
        if start_epoch < 0:
            raise InvalidConfig(f"start_epoch must not be negative, got {start_epoch}.")

        self.network = network
        self.dataset = dataset
        self.trainer = trainer
        self.slot = slot if slot is not None else SnapshotSlot()
        self.snapshot_every = snapshot_every
        self.max_epochs = max_epochs
        self.log_every = log_every
        self.on_snapshot = on_snapshot

        self.epoch = int(start_epoch)
        self.last_cost: Optional[float] = None
        self._state = TrainingState.IDLE
        self._stop_requested = threading.Event()
        self._started_at = 0.0

    @property
    def state(self) -> TrainingState:
        return self._state

    @property
    def elapsed(self) -> float:
        if self._state is TrainingState.IDLE:
            return 0.0
        return time.perf_counter() - self._started_at

    def stop(self) -> None:
        """Ask the loop to stop at the next epoch boundary. Safe to call from any thread."""
        self._stop_requested.set()

    def publish_snapshot(self) -> TrainingSnapshot:
        """
        Capture and publish the current state.

        The cost is recomputed from the very parameters being copied so the
        snapshot's cost, epoch and layers always belong together.
        """
        current_cost = self.trainer.cost_fn(self.network, self.dataset)
        snapshot = TrainingSnapshot.capture(
            net=self.network,
            epoch=self.epoch,
            cost=current_cost,
            elapsed=self.elapsed,
        )
        self.slot.publish(snapshot)
        if self.on_snapshot is not None:
            self.on_snapshot(snapshot)
        return snapshot

    def _should_stop(self) -> bool:
        if self._stop_requested.is_set():
            return True
        return self.max_epochs is not None and self.epoch >= self.max_epochs

    def run(self) -> TrainingSnapshot:
        """
        Train until stopped.

        Raises:
            RuntimeError: If the loop is not IDLE.
            Exception: Whatever a training step raises; the loop is STOPPED afterwards.

        Returns:
            The final snapshot.
        """
        if self._state is not TrainingState.IDLE:
            raise RuntimeError(f"Training loop can only be started once (state: {self._state.value}).")

        self._state = TrainingState.RUNNING
        self._started_at = time.perf_counter()
        logger.info(
            f"Training {self.network!r} on {len(self.dataset)} samples with {self.trainer!r} "
            f"({self.network.total_parameter_count()} parameters)."
        )

        try:
            self.publish_snapshot()
            while not self._should_stop():
                self.last_cost = self.trainer.step(self.network, self.dataset)
                self.epoch += 1

                if self.epoch % self.log_every == 0:
                    logger.info(f"Epoch: {self.epoch} - Cost: {self.last_cost:.6f} - Time: {self.elapsed:.1f} s")

                if self.epoch % self.snapshot_every == 0:
                    self.publish_snapshot()
        except Exception:
            self._state = TrainingState.STOPPED
            logger.error(f"Training step failed at epoch {self.epoch}.")
            raise

        final = self.publish_snapshot()
        self._state = TrainingState.STOPPED
        logger.info(f"Training stopped after {self.epoch} epochs - Cost: {final.cost:.6f} - Time: {final.elapsed:.1f} s")
        return final
