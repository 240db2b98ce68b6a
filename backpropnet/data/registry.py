"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, MutableMapping

from ..core.types import Example
from .utils import offline_default


@dataclass(frozen=True)
class DataSpec:
    """Structural information about a dataset.

    Attributes
    ----------
    d_in:
        Length of every input vector; must match the network's first layer.
    d_out:
        Length of every target vector; must match the network's last layer.
    num_classes:
        Number of classes encoded by the one-hot targets.
    normalization:
        Metadata describing scaling applied to the inputs.  The registry does
        not interpret these values but keeping them makes runs reproducible.
    extra:
        Free-form metadata such as the original image shape.
    """

    d_in: int
    d_out: int
    num_classes: int
    normalization: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DatasetSpec:
    """A decoded dataset ready to hand to the trainer."""

    name: str
    train: List[Example]
    test: List[Example]
    data_spec: DataSpec
    provenance: Dict[str, Any]

    @property
    def splits(self) -> Dict[str, int]:
        return {"train": len(self.train), "test": len(self.test)}


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("mnist")
        def build_mnist(**kwargs):
            ...

    or directly::

        register_dataset("mnist", build_mnist)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(
    dataset: str,
    /,
    *,
    offline: bool | None = None,
    cache_dir: str | Path | None = None,
    **options: Any,
) -> DatasetSpec:
    """Build and validate the :class:`DatasetSpec` registered as ``dataset``."""

    if dataset not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown dataset {dataset!r}. Available datasets: {available}")

    if offline is None:
        offline = offline_default()
    factory = _REGISTRY[dataset]
    spec = factory(offline=offline, cache_dir=cache_dir, **options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    data_spec = spec.data_spec
    if data_spec.d_in <= 0 or data_spec.d_out <= 0:
        raise ValueError(f"Dataset {spec.name!r} has empty input or target vectors")
    if data_spec.num_classes != data_spec.d_out:
        raise ValueError(
            f"Dataset {spec.name!r} declares {data_spec.num_classes} classes "
            f"but {data_spec.d_out}-wide targets"
        )
    if not spec.train:
        raise ValueError(f"Dataset {spec.name!r} has no training examples")
    for split, examples in (("train", spec.train), ("test", spec.test)):
        for idx, (inputs, target) in enumerate(examples):
            if inputs.shape != (data_spec.d_in,) or target.shape != (data_spec.d_out,):
                raise ValueError(
                    f"{spec.name} {split}[{idx}] has shapes {inputs.shape}/{target.shape}, "
                    f"expected ({data_spec.d_in},)/({data_spec.d_out},)"
                )


__all__ = [
    "DataSpec",
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
