"""
Training Snapshots
==================
The only state shared between the training thread and the renderer.

The training thread owns the live Network. From time to time it builds a
TrainingSnapshot (a read-only deep copy of the layers together with the epoch
and cost they belong to) and publishes it to a SnapshotSlot. The renderer
only ever calls `latest()`. Publishing replaces a single reference under a
lock, so a reader sees either the previous snapshot or the new one, never a
mix of both.
"""
from __future__ import annotations

from dataclasses import dataclass
import threading
from typing import Optional

from mlpviz.nn.network import Layer, Network


@dataclass(frozen=True)
class TrainingSnapshot:
    """Immutable, self-contained copy of the training state at one epoch."""
    epoch: int
    cost: float
    layers: tuple[Layer, ...]
    elapsed: float = 0.0  # seconds since the training loop started

    @classmethod
    def capture(cls, net: Network, epoch: int, cost: float, elapsed: float = 0.0) -> TrainingSnapshot:
        """Deep-copy the network's layers into read-only matrices."""
        return cls(
            epoch=int(epoch),
            cost=float(cost),
            layers=tuple(layer.frozen_copy() for layer in net.layers),
            elapsed=float(elapsed),
        )

    @property
    def layer_sizes(self) -> list[int]:
        return [self.layers[0].in_dim] + [layer.out_dim for layer in self.layers]

    def network(self) -> Network:
        """A new, writable Network with the snapshot's parameters."""
        return Network.from_layers(self.layers)


class SnapshotSlot:
    """Single-slot, latest-wins mailbox for snapshots."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: Optional[TrainingSnapshot] = None
        self._published = 0

    def publish(self, snapshot: TrainingSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot
            self._published += 1

    def latest(self) -> Optional[TrainingSnapshot]:
        with self._lock:
            return self._snapshot

    @property
    def published_count(self) -> int:
        """How many snapshots have been published so far."""
        with self._lock:
            return self._published

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None
