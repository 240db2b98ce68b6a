"""Mini-batch stochastic gradient descent over a :class:`Network`."""

from __future__ import annotations

from typing import List, MutableSequence, Sequence

import numpy as np

from ..core.network import Network
from ..core.sampling import default_rng, shuffle_in_place
from ..core.types import EpochReport, Example
from .metrics import mean_loss


def mini_batches(data: Sequence[Example], size: int) -> List[Sequence[Example]]:
    """Split ``data`` into contiguous slices of ``size``; the last may be short."""

    if size <= 0:
        raise ValueError(f"mini_batch_size must be positive, got {size}")
    return [data[start : start + size] for start in range(0, len(data), size)]


class Trainer:
    """Run epochs of shuffled mini-batch SGD and report progress."""

    def __init__(
        self,
        network: Network,
        rng: np.random.Generator | None = None,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        self.network = network
        self.rng = default_rng(rng)
        self.callbacks = list(callbacks or [])

    def run(
        self,
        training_data: Sequence[Example],
        epochs: int,
        mini_batch_size: int,
        learning_rate: float,
        test_data: Sequence[Example] | None = None,
    ) -> List[EpochReport]:
        if epochs < 0:
            raise ValueError(f"epochs must be non-negative, got {epochs}")
        if mini_batch_size <= 0:
            raise ValueError(f"mini_batch_size must be positive, got {mini_batch_size}")
        if not learning_rate > 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate!r}")

        if isinstance(training_data, MutableSequence):
            data = training_data
        else:
            data = list(training_data)

        history: List[EpochReport] = []
        for epoch in range(epochs):
            shuffle_in_place(data, self.rng)
            for batch in mini_batches(data, mini_batch_size):
                self.network.update_mini_batch(batch, learning_rate)

            if test_data is not None:
                report = EpochReport(
                    epoch=epoch,
                    correct=self.network.evaluate(test_data),
                    total=len(test_data),
                    loss=mean_loss(self.network, test_data),
                )
            else:
                report = EpochReport(epoch=epoch)
            history.append(report)
            self._emit_epoch(report)
        return history

    def _emit_epoch(self, report: EpochReport) -> None:
        metrics = report.metrics()
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(report.epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(report.epoch, metrics)


def stochastic_gradient_descent(
    network: Network,
    training_data: Sequence[Example],
    epochs: int,
    mini_batch_size: int,
    learning_rate: float,
    test_data: Sequence[Example] | None = None,
    *,
    rng: np.random.Generator | None = None,
    callbacks: Sequence[object] | None = None,
) -> List[EpochReport]:
    """Train ``network`` in place; see :meth:`Trainer.run`."""

    trainer = Trainer(network, rng=rng, callbacks=callbacks)
    return trainer.run(training_data, epochs, mini_batch_size, learning_rate, test_data)


__all__ = ["Trainer", "mini_batches", "stochastic_gradient_descent"]
