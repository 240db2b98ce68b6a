"""Deterministic run summarisation helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping

import numpy as np

_SKIP_KEYS = {"epoch", "seed", "split", "sha"}


def _extract_numeric(
    records: Iterable[Mapping[str, object]]
) -> tuple[list[int], Mapping[str, list[float]]]:
    epochs: list[int] = []
    metrics: dict[str, list[float]] = {}
    for record in records:
        epochs.append(int(record.get("epoch", len(epochs))))  # type: ignore[arg-type]
        for key, value in record.items():
            if key in _SKIP_KEYS:
                continue
            if isinstance(value, (int, float)):
                metrics.setdefault(key, []).append(float(value))
    return epochs, metrics


def _build_summary(records: list[Mapping[str, object]]) -> Mapping[str, object]:
    epochs, metrics = _extract_numeric(records)
    summary_metrics: dict[str, Mapping[str, float]] = {}
    for name, values in metrics.items():
        if not values:
            continue
        arr = np.asarray(values, dtype=np.float64)
        summary_metrics[name] = {
            "min": float(np.min(arr)),
            "max": float(np.max(arr)),
            "mean": float(np.mean(arr)),
            "last": float(arr[-1]),
        }

    summary: dict[str, object] = {
        "version": 1,
        "records": len(records),
        "metrics": summary_metrics,
    }
    accuracy = metrics.get("accuracy")
    if accuracy and len(accuracy) == len(epochs):
        # argmax keeps the earliest epoch on ties
        summary["best_epoch"] = epochs[int(np.argmax(accuracy))]
    return summary


def write_summary(metrics_jsonl: str | Path, out_summary_json: str | Path) -> str:
    """Write a deterministic summary for ``metrics_jsonl``."""

    metrics_path = Path(metrics_jsonl)
    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    records: list[Mapping[str, object]] = []
    if metrics_path.exists():
        for line in metrics_path.read_text().splitlines():
            line = line.strip()
            if not line:
                continue
            records.append(json.loads(line))

    summary = _build_summary(records)
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["write_summary"]
