"""Metric helpers for the trainer."""

from __future__ import annotations

from typing import Dict, Mapping, Sequence

import numpy as np

from ..core.network import Network
from ..core.types import Array, Example


def decode_one_hot(target: Array) -> int:
    """Return the class index of ``target``; ties pick the lowest index."""

    return int(np.argmax(np.asarray(target)))


def mean_loss(network: Network, data: Sequence[Example]) -> float:
    if not data:
        return 0.0
    return float(np.mean([network.loss(inputs, target) for inputs, target in data]))


def compute_metrics(network: Network, data: Sequence[Example]) -> Mapping[str, float]:
    """Return ``correct``, ``total``, ``accuracy`` and ``loss`` over ``data``."""

    total = len(data)
    correct = network.evaluate(data)
    results: Dict[str, float] = {
        "correct": float(correct),
        "total": float(total),
        "accuracy": correct / total if total else 0.0,
        "loss": mean_loss(network, data),
    }
    return results


__all__ = ["compute_metrics", "decode_one_hot", "mean_loss"]
