"""Quadratic (squared error) loss used throughout training."""

from __future__ import annotations

from typing import Callable

import numpy as np

from .types import Array

LossFn = Callable[[Array, Array], tuple[float, Array]]


def quadratic(prediction: Array, target: Array) -> tuple[float, Array]:
    """Return ``0.5 * sum((a - y)^2)`` and its gradient ``a - y``."""

    diff = prediction - target
    return float(0.5 * np.sum(np.square(diff))), diff


__all__ = ["LossFn", "quadratic"]
