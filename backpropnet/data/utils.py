"""Utility helpers for dataset loaders."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping

import numpy as np

from ..core.types import Example

DEFAULT_CACHE_SUBDIR = Path.home() / ".cache" / "backpropnet"


def resolve_cache_dir(cache_dir: str | Path | None = None) -> Path:
    """Resolve the effective cache directory for datasets."""

    env_dir = os.environ.get("BACKPROPNET_CACHE_DIR")
    base = Path(cache_dir or env_dir or DEFAULT_CACHE_SUBDIR)
    base.mkdir(parents=True, exist_ok=True)
    return base


def offline_default() -> bool:
    """Offline unless ``BACKPROPNET_DATA_OFFLINE`` is set to ``0``."""

    return os.environ.get("BACKPROPNET_DATA_OFFLINE", "1") != "0"


@dataclass(frozen=True)
class SplitIndices:
    """Indices for train/test partitions."""

    train: np.ndarray
    test: np.ndarray

    @property
    def sizes(self) -> Mapping[str, int]:
        return {"train": int(self.train.size), "test": int(self.test.size)}


def deterministic_split(
    n_samples: int,
    *,
    test_split: float = 0.2,
    seed: int = 0,
) -> SplitIndices:
    """Return deterministic indices for the requested test ratio."""

    if not 0 <= test_split < 1:
        raise ValueError("test_split must be in [0, 1)")

    rng = np.random.default_rng(seed)
    indices = np.arange(n_samples)
    rng.shuffle(indices)

    test_size = int(round(n_samples * test_split))
    # Keep at least one test sample when a test split was requested
    test_size = min(max(test_size, 1 if test_split > 0 else 0), n_samples)
    if n_samples - test_size <= 0:
        raise ValueError("Not enough samples for the requested split")

    return SplitIndices(train=indices[test_size:], test=indices[:test_size])


def one_hot(labels: np.ndarray, num_classes: int) -> np.ndarray:
    labels = np.asarray(labels, dtype=np.int64).reshape(-1)
    if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
        raise ValueError(f"Labels must lie in [0, {num_classes}), got {labels.min()}..{labels.max()}")
    return np.eye(num_classes, dtype=np.float64)[labels]


def scale_pixels(images: np.ndarray) -> np.ndarray:
    """Flatten images to rows and scale 0-255 intensities into [0, 1]."""

    images = np.asarray(images, dtype=np.float64)
    images = images.reshape(images.shape[0], -1)
    if images.size and images.max() > 1:
        images = images / 255.0
    return images


def to_examples(features: np.ndarray, targets: np.ndarray) -> List[Example]:
    """Pair feature rows with target rows as independent :class:`Example` objects."""

    if features.shape[0] != targets.shape[0]:
        raise ValueError(
            f"Feature rows ({features.shape[0]}) and target rows ({targets.shape[0]}) differ"
        )
    return [
        Example(inputs=np.array(x, dtype=np.float64), target=np.array(y, dtype=np.float64))
        for x, y in zip(features, targets)
    ]


__all__ = [
    "SplitIndices",
    "deterministic_split",
    "offline_default",
    "one_hot",
    "resolve_cache_dir",
    "scale_pixels",
    "to_examples",
]
