"""Random sampling helpers driven by an explicit generator."""

from __future__ import annotations

from typing import MutableSequence, Tuple, TypeVar

import numpy as np

from .types import Array

T = TypeVar("T")


def default_rng(rng: np.random.Generator | None = None) -> np.random.Generator:
    """Return ``rng`` or a freshly seeded generator when ``None``."""

    return rng if rng is not None else np.random.default_rng()


def gaussian(rng: np.random.Generator, shape: int | Tuple[int, ...] = ()) -> Array:
    """Draw standard-normal samples with the Box-Muller transform.

    Each sample consumes two independent uniform draws ``u1`` and ``u2`` and
    returns ``sqrt(-2 ln u1) * cos(2 pi u2)``.  ``u1`` is taken from ``(0, 1]``
    so the logarithm stays finite.
    """

    u1 = 1.0 - rng.random(shape)
    u2 = rng.random(shape)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def shuffle_in_place(items: MutableSequence[T], rng: np.random.Generator) -> None:
    """Fisher-Yates shuffle of ``items``, in place."""

    for i in range(len(items) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        items[i], items[j] = items[j], items[i]


__all__ = ["default_rng", "gaussian", "shuffle_in_place"]
