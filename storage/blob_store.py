from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional

from settings import get_settings


class BlobStore:
    """Key-value store of opaque byte blobs, optionally mirrored to disk."""

    def __init__(self, name: str, root_path: Optional[Path] = None) -> None:
        self.name = name
        self._objects: Dict[str, bytes] = {}
        self.root_path = root_path
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def put_object(self, key: str, data: bytes) -> None:
        """Store ``data`` under ``key``; raises ``OSError`` when the disk write fails."""
        with self._lock:
            if self.root_path:
                path = self.root_path / key
                path.parent.mkdir(parents=True, exist_ok=True)
                # write-then-rename keeps the previous blob intact on failure
                staging = path.with_name(f".{path.name}.tmp")
                staging.write_bytes(data)
                os.replace(staging, path)
            self._objects[key] = data

    def get_object(self, key: str) -> bytes:
        with self._lock:
            data = self._objects.get(key)
            if data is not None:
                return data

        if self.root_path:
            path = self.root_path / key
            if path.exists():
                data = path.read_bytes()
                with self._lock:
                    self._objects[key] = data
                return data

        raise KeyError(f"Object with key {key!r} not found in store {self.name!r}.")

    def list_objects(self) -> Iterable[str]:
        with self._lock:
            keys = set(self._objects.keys())

        if self.root_path:
            for path in self.root_path.rglob("*"):
                if path.is_file() and not path.name.startswith("."):
                    keys.add(path.relative_to(self.root_path).as_posix())

        return sorted(keys)


@lru_cache
def build_default_store(root_path: Optional[str] = None) -> BlobStore:
    settings = get_settings()
    store_root = settings.store_root_path if root_path is None else root_path
    path = Path(store_root) if store_root else None
    return BlobStore(name="house-monitor", root_path=path)
