"""Pipeline assembly: config -> dataset -> network -> trainer -> artifacts."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..core.errors import DimensionMismatch
from ..core.network import Network
from ..core.types import RunResult
from ..data import get_dataset
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import ConsoleSink, CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .metrics import compute_metrics
from .trainer import Trainer

_PRESETS: Dict[str, Mapping[str, object]] = {
    "mnist-784-30-10": {
        "data": {
            "name": "mnist",
            "options": {"train_items": 8000, "test_items": 2000},
        },
        "model": {"sizes": [784, 30, 10]},
        "train": {
            "epochs": 30,
            "mini_batch_size": 10,
            "learning_rate": 0.5,
            "seed": 0,
            "run_dir": "runs/mnist-784-30-10",
            "enable_plots": False,
        },
    },
    "mnist-quick": {
        "data": {
            "name": "mnist",
            "options": {"train_items": 1000, "test_items": 200},
        },
        "model": {"hidden": [30]},
        "train": {
            "epochs": 5,
            "mini_batch_size": 10,
            "learning_rate": 3.0,
            "seed": 1,
            "run_dir": "runs/mnist-quick",
            "enable_plots": False,
        },
    },
    "blobs-small": {
        "data": {
            "name": "blobs",
            "options": {"n_samples": 300, "num_classes": 3, "seed": 0},
        },
        "model": {"sizes": [2, 8, 3]},
        "train": {
            "epochs": 20,
            "mini_batch_size": 10,
            "learning_rate": 2.0,
            "seed": 7,
            "run_dir": "runs/blobs-small",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None
_REQUIRED_SECTIONS = {"data", "model", "train"}


def read_config_file(path: Path) -> Mapping[str, object]:
    """Decode a JSON or YAML config file into a mapping."""

    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        presets: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                missing = _REQUIRED_SECTIONS - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
                presets[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = presets
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def merge_config(base: dict, override: Mapping[str, object]) -> dict:
    """Recursively overlay ``override`` onto ``base``."""

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_config(dict(base[key]), value)
        else:
            base[key] = value
    return base


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")

    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    offline = config.get("offline")
    dataset = get_dataset(
        str(data_cfg["name"]),
        offline=None if offline is None else bool(offline),
        cache_dir=train_cfg.get("cache_dir"),
        **dict(data_cfg.get("options", {})),
    )
    data_spec = dataset.data_spec

    sizes = _build_sizes(model_cfg, data_spec.d_in, data_spec.d_out)
    if sizes[0] != data_spec.d_in:
        raise DimensionMismatch(
            f"Configured input width {sizes[0]} but dataset provides {data_spec.d_in}"
        )
    if sizes[-1] != data_spec.d_out:
        raise DimensionMismatch(
            f"Configured output width {sizes[-1]} but dataset provides {data_spec.d_out}"
        )

    epochs = int(train_cfg.get("epochs", 1))
    mini_batch_size = int(train_cfg.get("mini_batch_size", 10))
    learning_rate = float(train_cfg.get("learning_rate", 0.5))
    seed = int(train_cfg.get("seed", 0))
    evaluate = bool(train_cfg.get("evaluate", True))
    verbose = bool(train_cfg.get("verbose", True))

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    network = Network(sizes, rng=np.random.default_rng(seed))

    if verbose:
        _print_startup_summary(
            dataset_name=dataset.name,
            splits=dataset.splits,
            sizes=sizes,
            epochs=epochs,
            mini_batch_size=mini_batch_size,
            learning_rate=learning_rate,
            param_count=network.parameter_count(),
        )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", split="test", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv", split="test")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    callbacks: List[object] = [jsonl, csv_sink, plots]
    if verbose:
        callbacks.append(ConsoleSink())

    trainer = Trainer(network, rng=np.random.default_rng(seed + 1), callbacks=callbacks)
    test_data = dataset.test if evaluate and dataset.test else None
    history = trainer.run(
        dataset.train,
        epochs=epochs,
        mini_batch_size=mini_batch_size,
        learning_rate=learning_rate,
        test_data=test_data,
    )
    plots.close()

    final = {"train": dict(compute_metrics(network, dataset.train))}
    if dataset.test:
        final["test"] = dict(compute_metrics(network, dataset.test))
    (run_dir / "metrics_final.json").write_text(json.dumps(final, indent=2, sort_keys=True))

    resolved = _safe_config(config, sizes)
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=resolved,
        dataset_provenance=dataset.provenance,
        topology=sizes,
    )
    summary_path = write_summary(jsonl.path, run_dir / "summary.json")
    (run_dir / "config.json").write_text(json.dumps(resolved, indent=2))

    return RunResult(
        epochs=epochs,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        history=history,
    )


def _build_sizes(model_cfg: Mapping[str, object], d_in: int, d_out: int) -> List[int]:
    if "sizes" in model_cfg:
        return [int(size) for size in model_cfg["sizes"]]  # type: ignore[union-attr]
    sizes = [int(model_cfg.get("d_in", d_in))]
    sizes.extend(int(h) for h in model_cfg.get("hidden", []))  # type: ignore[union-attr]
    sizes.append(int(model_cfg.get("d_out", d_out)))
    return sizes


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _safe_config(config: Mapping[str, object], sizes: Sequence[int]) -> Mapping[str, object]:
    copied = json.loads(json.dumps(config))
    copied.setdefault("model", {})["sizes"] = list(sizes)
    return copied


def _print_startup_summary(
    *,
    dataset_name: str,
    splits: Mapping[str, int],
    sizes: Sequence[int],
    epochs: int,
    mini_batch_size: int,
    learning_rate: float,
    param_count: int,
) -> None:
    print("=== backpropnet run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Examples      : {splits.get('train', 0)} train / {splits.get('test', 0)} test")
    print(f"Topology      : {list(sizes)}")
    print(f"Epochs        : {epochs}")
    print(f"Mini-batch    : {mini_batch_size}")
    print(f"Learning rate : {learning_rate}")
    print(f"Parameters    : {param_count}")
    print("=======================")


__all__ = ["load_preset", "merge_config", "presets", "read_config_file", "run_pipeline"]
