"""MNIST digits with an offline, deterministic fixture."""

from __future__ import annotations

import warnings
from pathlib import Path

import numpy as np

from .cache import OfflineFixture, RemoteAsset, fetch
from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import one_hot, resolve_cache_dir, scale_pixels, to_examples

MNIST_ARCHIVE = RemoteAsset(
    name="mnist",
    url="https://storage.googleapis.com/tensorflow/tf-keras-datasets/mnist.npz",
    filename="mnist.npz",
    checksum="731c5ac602752760c8e48fbffcf8c3b850d9dc2a2aedcf2cc48468fc17b673d1",
)

_FIXTURE_TRAIN = 1000
_FIXTURE_TEST = 200


def _fixture_images(count: int, offset: int) -> tuple[np.ndarray, np.ndarray]:
    # Each class lights a 3-row band at its own height; the band's horizontal
    # extent varies with the sample index.  Built from integer arithmetic only
    # so the archive is byte-identical across numpy releases.
    labels = (np.arange(count, dtype=np.int64) + offset) % 10
    images = np.zeros((count, 28, 28), dtype=np.uint8)
    for idx, label in enumerate(labels):
        top = 4 + 2 * int(label)
        left = 2 + (idx + offset) % 7
        width = 14 + (idx // 10 + offset) % 6
        images[idx, top : top + 3, left : left + width] = 255
    return images, labels.astype(np.uint8)


def _build_offline_fixture(path: Path) -> None:
    """Write an MNIST-shaped archive with the Keras key layout."""

    x_train, y_train = _fixture_images(_FIXTURE_TRAIN, offset=0)
    x_test, y_test = _fixture_images(_FIXTURE_TEST, offset=3)
    with path.open("wb") as handle:
        np.savez(handle, x_train=x_train, y_train=y_train, x_test=x_test, y_test=y_test)


def _load_archive(path: Path) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    with np.load(path) as data:
        return data["x_train"], data["y_train"], data["x_test"], data["y_test"]


def _take(
    images: np.ndarray, labels: np.ndarray, limit: int | None, split: str
) -> tuple[np.ndarray, np.ndarray]:
    if limit is None:
        return images, labels
    if limit > len(images):
        warnings.warn(
            f"Requested {limit} mnist {split} items but the archive holds {len(images)}",
            RuntimeWarning,
            stacklevel=3,
        )
    return images[:limit], labels[:limit]


@register_dataset("mnist")
def build_mnist(
    *,
    offline: bool = True,
    cache_dir: str | Path | None = None,
    train_items: int | None = 8000,
    test_items: int | None = 2000,
) -> DatasetSpec:
    """Create a :class:`DatasetSpec` with 784-pixel inputs and one-hot targets."""

    cache_root = resolve_cache_dir(cache_dir)
    path, provenance = fetch(
        MNIST_ARCHIVE,
        fixture=OfflineFixture(cache_root / "offline" / "mnist_fixture.npz", _build_offline_fixture),
        offline=offline,
        cache_dir=cache_root,
    )
    x_train, y_train, x_test, y_test = _load_archive(path)

    x_train, y_train = _take(x_train, y_train, train_items, "train")
    x_test, y_test = _take(x_test, y_test, test_items, "test")

    train = to_examples(scale_pixels(x_train), one_hot(y_train, 10))
    test = to_examples(scale_pixels(x_test), one_hot(y_test, 10))

    data_spec = DataSpec(
        d_in=784,
        d_out=10,
        num_classes=10,
        normalization={"inputs": {"method": "minmax", "range": [0.0, 1.0]}},
        extra={"input_shape": (28, 28)},
    )

    provenance = dict(provenance)
    provenance.update({"train_items": len(train), "test_items": len(test)})

    return DatasetSpec(
        name="mnist",
        train=train,
        test=test,
        data_spec=data_spec,
        provenance=provenance,
    )


__all__ = ["build_mnist"]
