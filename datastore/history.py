from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import List, Optional

from app.schemas import HistoryEntry
from services.errors import PersistenceError
from settings import get_settings

logger = logging.getLogger(__name__)


class HistoryLog:
    """Append-only log of processed readings, optionally mirrored to a JSON file."""

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._entries: List[HistoryEntry] = []
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def append(self, entry: HistoryEntry) -> None:
        with self._lock:
            self._entries.append(entry)
            try:
                self._persist()
            except OSError:
                # appends are fire-and-forget for the caller
                logger.exception(
                    "Could not persist history entry",
                    extra={"house_id": entry.house_id},
                )

    def entries(self) -> list[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = [entry.model_dump(mode="json") for entry in self._entries]
        # write-then-rename so a crash never leaves a truncated log behind
        staging = self.persistence_path.with_name(f".{self.persistence_path.name}.tmp")
        staging.write_text(json.dumps(payload, indent=2))
        os.replace(staging, self.persistence_path)

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        # unreadable logs fail loudly instead of being overwritten
        try:
            raw = self.persistence_path.read_text() or "[]"
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("history file must hold a JSON list")
            entries = [HistoryEntry.model_validate(payload) for payload in data]
        except (OSError, ValueError) as exc:
            raise PersistenceError(
                f"History log {str(self.persistence_path)!r} is unreadable: {exc}"
            ) from exc

        self._entries.extend(entries)


@lru_cache
def build_default_history(path: Optional[str] = None) -> HistoryLog:
    settings = get_settings()
    history_path = settings.history_persistence_path if path is None else path
    persistence = Path(history_path) if history_path else None
    return HistoryLog(persistence_path=persistence)
