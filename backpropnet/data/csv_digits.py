"""Digit images stored as CSV rows (label column plus one column per pixel)."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.preprocessing import LabelEncoder

from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, one_hot, scale_pixels, to_examples


def _load_csv(path: Path, label_col: str) -> tuple[np.ndarray, np.ndarray]:
    df = pd.read_csv(path)
    if label_col not in df.columns:
        raise KeyError(f"Label column {label_col!r} not found in {path}")
    labels = df.pop(label_col).to_numpy()
    pixels = df.to_numpy(dtype=np.float64)
    return pixels, labels


@register_dataset("csv_digits")
def load_csv_digits(
    *,
    csv_path: str | Path | None = None,
    label_col: str = "label",
    test_split: float = 0.2,
    seed: int = 0,
    offline: bool = True,
    cache_dir: str | Path | None = None,
) -> DatasetSpec:
    """Load labelled pixel rows, e.g. the Kaggle digit-recognizer ``train.csv``."""

    if csv_path is None:
        raise ValueError("csv_digits requires a csv_path option")
    path = Path(csv_path)
    pixels, raw_labels = _load_csv(path, label_col)

    encoder = LabelEncoder()
    labels = encoder.fit_transform(raw_labels)
    num_classes = int(len(encoder.classes_))

    inputs = scale_pixels(pixels)
    targets = one_hot(labels, num_classes)
    splits = deterministic_split(inputs.shape[0], test_split=test_split, seed=seed)

    data_spec = DataSpec(
        d_in=int(inputs.shape[1]),
        d_out=num_classes,
        num_classes=num_classes,
        normalization={"inputs": {"method": "minmax", "range": [0.0, 1.0]}},
        extra={"classes": [str(label) for label in encoder.classes_]},
    )
    provenance = {
        "type": "csv",
        "csv_path": str(path),
        "label_col": label_col,
        "test_split": test_split,
        "seed": seed,
    }
    return DatasetSpec(
        name="csv_digits",
        train=to_examples(inputs[splits.train], targets[splits.train]),
        test=to_examples(inputs[splits.test], targets[splits.test]),
        data_spec=data_spec,
        provenance=provenance,
    )


__all__ = ["load_csv_digits"]
