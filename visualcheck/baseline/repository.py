"""Baseline repository — stores baselines, actual captures and diff images."""

from __future__ import annotations

import hashlib
import io
import json
import logging
import os
import re
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from visualcheck.errors import ConfigurationError, NotFoundError
from visualcheck.models.baseline_index import BaselineEntry, BaselineIndex

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9\-_]")


def sanitize_name(name: str) -> str:
    """Map a logical baseline name to a file-system safe key."""
    return _UNSAFE_CHARS.sub("_", name)


class BaselineRepository(ABC):
    """Named image storage with separate baseline, actual and diff areas."""

    @abstractmethod
    def save(self, name: str, data: bytes) -> str:
        """Write or overwrite the baseline for ``name``. Returns its location."""

    @abstractmethod
    def load(self, name: str) -> bytes:
        """Return baseline bytes or raise NotFoundError."""

    @abstractmethod
    def exists(self, name: str) -> bool: ...

    @abstractmethod
    def save_actual(self, name: str, data: bytes) -> str: ...

    @abstractmethod
    def save_diff(self, name: str, data: bytes) -> str: ...

    @abstractmethod
    def baseline_path(self, name: str) -> str: ...

    @abstractmethod
    def actual_path(self, name: str) -> str: ...

    @abstractmethod
    def diff_path(self, name: str) -> str: ...

    @abstractmethod
    def names(self) -> list[str]:
        """Logical names of every stored baseline."""

    @abstractmethod
    def clean_artifacts(self) -> int:
        """Delete actual and diff artifacts. Baselines are never touched."""

    def update(self, name: str, data: bytes) -> str:
        """Intentionally replace an existing baseline."""
        location = self.save(name, data)
        logger.info("Updated baseline: %s", name)
        return location

    def lock(self, name: str) -> AbstractContextManager:
        """Guard a check-then-write sequence on ``name``. No-op unless serialized."""
        return nullcontext()


def _image_size(data: bytes) -> tuple[int | None, int | None]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError):
        return None, None


class FileSystemBaselineRepository(BaselineRepository):
    """Stores PNG files under three directory roots plus a JSON name index."""

    INDEX_FILE = "index.json"

    def __init__(self, baseline_dir: Path, actual_dir: Path, diff_dir: Path):
        self.baseline_dir = Path(baseline_dir)
        self.actual_dir = Path(actual_dir)
        self.diff_dir = Path(diff_dir)
        self.index_path = self.baseline_dir / self.INDEX_FILE
        # Held across every load -> mutate -> save of the index
        self._index_lock = threading.RLock()

    # -- index --

    def load_index(self) -> BaselineIndex:
        """Load the name index from disk, or start an empty one."""
        if self.index_path.exists():
            try:
                with open(self.index_path) as f:
                    return BaselineIndex.model_validate(json.load(f))
            except (OSError, ValueError) as e:
                logger.warning("Failed to load baseline index: %s. Rebuilding.", e)
        return BaselineIndex()

    def _save_index(self, index: BaselineIndex) -> None:
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        index.last_updated = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        # Readers only ever see a complete file
        fd, tmp_path = tempfile.mkstemp(
            prefix=".index-", suffix=".tmp", dir=self.index_path.parent
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(index.model_dump(), f, indent=2)
            os.replace(tmp_path, self.index_path)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.debug("Saved baseline index to %s", self.index_path)

    def _key(self, name: str, index: BaselineIndex | None = None) -> str:
        key = sanitize_name(name)
        index = index if index is not None else self.load_index()
        entry = index.baselines.get(key)
        if entry is not None and entry.name != name:
            raise ConfigurationError(
                f"Baseline name '{name}' collides with existing baseline "
                f"'{entry.name}' (both map to file key '{key}')"
            )
        return key

    # -- paths --

    def _baseline_file(self, key: str) -> Path:
        return self.baseline_dir / f"{key}.png"

    def baseline_path(self, name: str) -> str:
        return str(self._baseline_file(self._key(name)))

    def actual_path(self, name: str) -> str:
        return str(self.actual_dir / f"{self._key(name)}.png")

    def diff_path(self, name: str) -> str:
        return str(self.diff_dir / f"{self._key(name)}-diff.png")

    # -- baselines --

    def save(self, name: str, data: bytes) -> str:
        width, height = _image_size(data)
        with self._index_lock:
            index = self.load_index()
            key = self._key(name, index)
            dest = self._baseline_file(key)
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(data)

            index.baselines[key] = BaselineEntry(
                name=name,
                key=key,
                image_path=str(dest.relative_to(self.baseline_dir)),
                updated_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
                image_hash=hashlib.sha256(data).hexdigest(),
                width=width,
                height=height,
            )
            self._save_index(index)
        logger.info("Saved baseline: %s", dest)
        return str(dest)

    def load(self, name: str) -> bytes:
        path = Path(self.baseline_path(name))
        if not path.exists():
            raise NotFoundError(name, str(path))
        return path.read_bytes()

    def exists(self, name: str) -> bool:
        return Path(self.baseline_path(name)).exists()

    def names(self) -> list[str]:
        index = self.load_index()
        found = {
            entry.name for entry in index.baselines.values()
            if (self.baseline_dir / entry.image_path).exists()
        }
        if self.baseline_dir.exists():
            # Baselines copied in by hand have no index entry
            for path in self.baseline_dir.glob("*.png"):
                if path.stem not in index.baselines:
                    found.add(path.stem)
        return sorted(found)

    # -- artifacts --

    def save_actual(self, name: str, data: bytes) -> str:
        dest = Path(self.actual_path(name))
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
        logger.debug("Saved actual capture: %s", dest)
        return str(dest)

    def save_diff(self, name: str, data: bytes) -> str:
        dest = Path(self.diff_path(name))
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
        logger.info("Saved diff image: %s", dest)
        return str(dest)

    def clean_artifacts(self) -> int:
        removed = 0
        for directory in (self.actual_dir, self.diff_dir):
            if not directory.exists():
                continue
            for path in directory.glob("*.png"):
                path.unlink()
                removed += 1
        logger.info("Removed %d visual artifacts", removed)
        return removed


class InMemoryBaselineRepository(BaselineRepository):
    """Dictionary-backed repository for tests and dry runs."""

    def __init__(self) -> None:
        self.baselines: dict[str, bytes] = {}
        self.actuals: dict[str, bytes] = {}
        self.diffs: dict[str, bytes] = {}
        self._owners: dict[str, str] = {}

    def _key(self, name: str) -> str:
        key = sanitize_name(name)
        owner = self._owners.get(key)
        if owner is not None and owner != name:
            raise ConfigurationError(
                f"Baseline name '{name}' collides with existing baseline "
                f"'{owner}' (both map to file key '{key}')"
            )
        return key

    def baseline_path(self, name: str) -> str:
        return f"memory://baselines/{self._key(name)}.png"

    def actual_path(self, name: str) -> str:
        return f"memory://actual/{self._key(name)}.png"

    def diff_path(self, name: str) -> str:
        return f"memory://diffs/{self._key(name)}-diff.png"

    def save(self, name: str, data: bytes) -> str:
        key = self._key(name)
        self.baselines[key] = bytes(data)
        self._owners[key] = name
        return self.baseline_path(name)

    def load(self, name: str) -> bytes:
        key = self._key(name)
        if key not in self.baselines:
            raise NotFoundError(name, self.baseline_path(name))
        return self.baselines[key]

    def exists(self, name: str) -> bool:
        return self._key(name) in self.baselines

    def save_actual(self, name: str, data: bytes) -> str:
        self.actuals[self._key(name)] = bytes(data)
        return self.actual_path(name)

    def save_diff(self, name: str, data: bytes) -> str:
        self.diffs[self._key(name)] = bytes(data)
        return self.diff_path(name)

    def names(self) -> list[str]:
        return sorted(self._owners[k] for k in self.baselines)

    def clean_artifacts(self) -> int:
        removed = len(self.actuals) + len(self.diffs)
        self.actuals.clear()
        self.diffs.clear()
        return removed


class SerializedBaselineRepository(BaselineRepository):
    """Wraps another repository and hands out one lock per baseline key.

    The engine holds ``lock(name)`` across its exists/save bootstrap check, so
    parallel workers seeding the same new baseline cannot both write it.

    Locks are kept for every key seen during the wrapper's lifetime and are
    never released. Create one wrapper per test session, not per comparison.
    """

    def __init__(self, inner: BaselineRepository):
        self.inner = inner
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def lock(self, name: str) -> AbstractContextManager:
        key = sanitize_name(name)
        with self._guard:
            return self._locks.setdefault(key, threading.RLock())

    def save(self, name: str, data: bytes) -> str:
        with self.lock(name):
            return self.inner.save(name, data)

    def load(self, name: str) -> bytes:
        return self.inner.load(name)

    def exists(self, name: str) -> bool:
        return self.inner.exists(name)

    def save_actual(self, name: str, data: bytes) -> str:
        return self.inner.save_actual(name, data)

    def save_diff(self, name: str, data: bytes) -> str:
        return self.inner.save_diff(name, data)

    def baseline_path(self, name: str) -> str:
        return self.inner.baseline_path(name)

    def actual_path(self, name: str) -> str:
        return self.inner.actual_path(name)

    def diff_path(self, name: str) -> str:
        return self.inner.diff_path(name)

    def names(self) -> list[str]:
        return self.inner.names()

    def clean_artifacts(self) -> int:
        return self.inner.clean_artifacts()
