import json

import numpy as np
import pandas as pd
import pytest

from backpropnet.data import available_datasets, get_dataset
from backpropnet.data.cache import CacheError, CacheManifest, OfflineFixture, RemoteAsset, fetch, sha256sum


def test_registry_lists_builtin_datasets():
    assert {"blobs", "csv_digits", "mnist"} <= set(available_datasets())


def test_unknown_dataset_raises_key_error(tmp_path):
    with pytest.raises(KeyError, match="Unknown dataset"):
        get_dataset("does-not-exist", offline=True, cache_dir=tmp_path)


def test_mnist_offline(tmp_path, monkeypatch):
    monkeypatch.setenv("BACKPROPNET_DATA_OFFLINE", "1")
    spec = get_dataset("mnist", cache_dir=tmp_path, train_items=50, test_items=20)
    assert spec.splits == {"train": 50, "test": 20}
    assert spec.data_spec.d_in == 784
    assert spec.data_spec.d_out == 10
    inputs, target = spec.train[0]
    assert inputs.shape == (784,)
    assert 0.0 <= inputs.min() and inputs.max() == 1.0
    assert target.sum() == 1.0
    assert spec.provenance["mode"] == "offline"
    assert (tmp_path / "offline" / "mnist_fixture.npz").exists()


def test_mnist_offline_fixture_is_stable(tmp_path):
    first = get_dataset("mnist", offline=True, cache_dir=tmp_path / "a", train_items=5, test_items=5)
    second = get_dataset("mnist", offline=True, cache_dir=tmp_path / "b", train_items=5, test_items=5)
    assert first.provenance["checksum"] == second.provenance["checksum"]
    for a, b in zip(first.train, second.train):
        assert np.array_equal(a.inputs, b.inputs)


def test_csv_digits_from_file(tmp_path):
    rng = np.random.default_rng(0)
    pixels = rng.integers(0, 256, size=(20, 6))
    labels = np.array(["seven", "three"] * 10)
    frame = pd.DataFrame(pixels, columns=[f"pixel{i}" for i in range(6)])
    frame.insert(0, "label", labels)
    path = tmp_path / "digits.csv"
    frame.to_csv(path, index=False)

    spec = get_dataset("csv_digits", offline=True, csv_path=path, test_split=0.25, seed=1)
    assert spec.splits == {"train": 15, "test": 5}
    assert spec.data_spec.d_in == 6
    assert spec.data_spec.d_out == 2
    assert spec.data_spec.extra["classes"] == ["seven", "three"]
    for inputs, target in spec.train + spec.test:
        assert inputs.max() <= 1.0
        assert target.shape == (2,)


def test_csv_digits_requires_path_and_label(tmp_path):
    with pytest.raises(ValueError):
        get_dataset("csv_digits", offline=True)
    path = tmp_path / "nolabel.csv"
    pd.DataFrame({"a": [1, 2], "b": [3, 4]}).to_csv(path, index=False)
    with pytest.raises(KeyError):
        get_dataset("csv_digits", offline=True, csv_path=path)


def test_blobs_are_deterministic():
    a = get_dataset("blobs", offline=True, n_samples=30, num_classes=3, seed=4)
    b = get_dataset("blobs", offline=True, n_samples=30, num_classes=3, seed=4)
    assert a.splits == {"train": 24, "test": 6}
    assert a.data_spec.d_in == 2 and a.data_spec.d_out == 3
    for x, y in zip(a.train, b.train):
        assert np.array_equal(x.inputs, y.inputs)
        assert np.array_equal(x.target, y.target)


def _toy_asset(checksum=None):
    return RemoteAsset(
        name="toy",
        url="https://example.invalid/toy.bin",
        filename="toy.bin",
        checksum=checksum,
    )


def _write_fixture(path):
    path.write_bytes(b"fixture")


def test_cache_manifest_records_offline_fetch(tmp_path):
    fixture = OfflineFixture(tmp_path / "offline" / "toy.bin", _write_fixture)
    path, record = fetch(_toy_asset("0" * 64), fixture=fixture, offline=True, cache_dir=tmp_path)
    assert path.read_bytes() == b"fixture"
    assert record["mode"] == "offline"
    assert record["checksum"] == sha256sum(path)
    manifest = json.loads((tmp_path / "manifest.json").read_text())
    assert manifest["toy"]["checksum"] == record["checksum"]
    assert CacheManifest(tmp_path).get("toy")["local_path"] == str(path)


def test_online_fetch_reuses_verified_cached_copy(tmp_path):
    cached = tmp_path / "toy.bin"
    cached.write_bytes(b"archive")
    path, record = fetch(_toy_asset(sha256sum(cached)), offline=False, cache_dir=tmp_path)
    assert path == cached
    assert record["mode"] == "cache"


def test_offline_fetch_without_fixture_fails(tmp_path):
    with pytest.raises(CacheError):
        fetch(_toy_asset(), offline=True, cache_dir=tmp_path)


def test_missing_fixture_file_fails(tmp_path):
    with pytest.raises(CacheError, match="fixture missing"):
        fetch(_toy_asset(), fixture=OfflineFixture(tmp_path / "absent.bin"), offline=True, cache_dir=tmp_path)


def test_mnist_warns_when_asking_for_more_than_the_archive(tmp_path):
    with pytest.warns(RuntimeWarning, match="archive holds 200"):
        spec = get_dataset("mnist", offline=True, cache_dir=tmp_path, train_items=10, test_items=500)
    assert spec.splits == {"train": 10, "test": 200}
