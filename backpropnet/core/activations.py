"""Activation utilities for backpropnet."""

from __future__ import annotations

import numpy as np

from .types import Array


def sigmoid(z: Array) -> Array:
    """Return the logistic sigmoid ``1 / (1 + exp(-z))``."""

    # exp overflows to inf for very negative z; the quotient is then 0.0.
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-z))


def sigmoid_prime(z: Array) -> Array:
    """Derivative of :func:`sigmoid` evaluated at the weighted sum ``z``."""

    s = sigmoid(z)
    return s * (1.0 - s)
