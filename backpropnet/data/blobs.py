"""Pure in-memory Gaussian clusters with one-hot targets."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, one_hot, to_examples


def _make_blobs(
    n_samples: int, n_features: int, num_classes: int, spread: float, seed: int
) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    centers = rng.uniform(-2.0, 2.0, size=(num_classes, n_features))
    labels = np.arange(n_samples, dtype=np.int64) % num_classes
    noise = spread * rng.standard_normal((n_samples, n_features))
    return centers[labels] + noise, labels


@register_dataset("blobs")
def build_blobs(
    *,
    n_samples: int = 300,
    n_features: int = 2,
    num_classes: int = 3,
    spread: float = 0.3,
    test_split: float = 0.2,
    seed: int = 0,
    offline: bool = True,
    cache_dir: str | Path | None = None,
) -> DatasetSpec:
    inputs, labels = _make_blobs(n_samples, n_features, num_classes, spread, seed)
    targets = one_hot(labels, num_classes)
    splits = deterministic_split(n_samples, test_split=test_split, seed=seed)

    provenance = {
        "type": "synthetic",
        "n_samples": n_samples,
        "n_features": n_features,
        "num_classes": num_classes,
        "spread": spread,
        "seed": seed,
    }
    return DatasetSpec(
        name="blobs",
        train=to_examples(inputs[splits.train], targets[splits.train]),
        test=to_examples(inputs[splits.test], targets[splits.test]),
        data_spec=DataSpec(d_in=n_features, d_out=num_classes, num_classes=num_classes),
        provenance=provenance,
    )


__all__ = ["build_blobs"]
