"""Offline-first cache for downloadable dataset archives."""

from __future__ import annotations

import hashlib
import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Mapping, Tuple

from .utils import offline_default, resolve_cache_dir

MANIFEST_NAME = "manifest.json"
_CHUNK = 1 << 16

FixtureBuilder = Callable[[Path], None]


class CacheError(RuntimeError):
    """Raised when an archive cannot be fetched or fails verification."""


@dataclass(frozen=True)
class RemoteAsset:
    """A downloadable archive plus the SHA-256 it must hash to."""

    name: str
    url: str
    filename: str
    checksum: str | None = None
    mirrors: Tuple[str, ...] = ()

    @property
    def sources(self) -> Tuple[str, ...]:
        return (self.url, *self.mirrors)


@dataclass(frozen=True)
class OfflineFixture:
    """Where a locally generated stand-in lives and how to build it."""

    path: Path
    builder: FixtureBuilder | None = None

    def ensure(self) -> Path:
        if self.builder is not None and not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.builder(self.path)
        if not self.path.exists():
            raise CacheError(f"Offline fixture missing: {self.path}")
        return self.path


def sha256sum(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()


@dataclass
class CacheManifest:
    """JSON index of every archive resolved into ``cache_dir``."""

    cache_dir: Path = field(default_factory=resolve_cache_dir)
    entries: Dict[str, Mapping[str, object]] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        self.cache_dir = Path(self.cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.cache_dir / MANIFEST_NAME
        if self.path.exists():
            try:
                self.entries = json.loads(self.path.read_text())
            except json.JSONDecodeError:
                # A truncated manifest only loses provenance, not data.
                self.entries = {}

    def record(self, name: str, entry: Mapping[str, object]) -> Mapping[str, object]:
        stored = dict(entry)
        stored.setdefault("recorded_at", time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))
        self.entries[name] = stored
        self.path.write_text(json.dumps(self.entries, indent=2, sort_keys=True))
        return stored

    def get(self, name: str) -> Mapping[str, object] | None:
        return self.entries.get(name)


def fetch(
    asset: RemoteAsset,
    *,
    fixture: OfflineFixture | None = None,
    offline: bool | None = None,
    retries: int = 2,
    cache_dir: str | Path | None = None,
    manifest: CacheManifest | None = None,
) -> tuple[Path, Mapping[str, object]]:
    """Resolve ``asset`` to a local file and record where it came from.

    Offline mode only ever touches ``fixture``.  Online mode reuses a cached
    copy whose digest matches, otherwise downloads from each source in turn and
    falls back to the fixture when every source fails.  ``asset.checksum`` is
    never applied to the fixture, which is a different file.
    """

    cache_root = resolve_cache_dir(cache_dir)
    manifest = manifest or CacheManifest(cache_root)
    if offline is None:
        offline = offline_default()

    if offline:
        if fixture is None:
            raise CacheError(f"Offline mode requested for {asset.name!r} but it has no fixture")
        path = fixture.ensure()
        return path, manifest.record(asset.name, _entry(asset.url, path, "offline"))

    target = cache_root / asset.filename
    if target.exists():
        if asset.checksum is None or sha256sum(target) == asset.checksum:
            return target, manifest.record(asset.name, _entry(asset.url, target, "cache"))
        target.unlink()

    failures: list[str] = []
    for source in asset.sources:
        for attempt in range(retries + 1):
            try:
                _download(source, target, asset.checksum)
            except (OSError, CacheError) as exc:  # pragma: no cover - network dependent
                failures.append(f"{source}: {exc}")
                time.sleep(min(2**attempt, 5))
                continue
            return target, manifest.record(asset.name, _entry(source, target, "download"))

    if fixture is not None:
        path = fixture.ensure()
        return path, manifest.record(asset.name, _entry(asset.url, path, "offline-fallback"))

    raise CacheError(f"Failed to fetch {asset.name!r}: {'; '.join(failures)}")


def _download(url: str, target: Path, checksum: str | None) -> None:
    import urllib.request

    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(target.name + ".part")
    digest = hashlib.sha256()
    try:
        with urllib.request.urlopen(url, timeout=60) as response, partial.open("wb") as handle:
            for chunk in iter(lambda: response.read(_CHUNK), b""):
                digest.update(chunk)
                handle.write(chunk)
        if checksum and digest.hexdigest() != checksum:
            raise CacheError(f"Checksum mismatch for {url}: {digest.hexdigest()} != {checksum}")
        partial.replace(target)
    finally:
        partial.unlink(missing_ok=True)


def _entry(source: str, path: Path, mode: str) -> Mapping[str, object]:
    return {
        "url": source,
        "local_path": str(path),
        "checksum": sha256sum(path),
        "mode": mode,
    }


__all__ = ["CacheError", "CacheManifest", "OfflineFixture", "RemoteAsset", "fetch", "sha256sum"]
