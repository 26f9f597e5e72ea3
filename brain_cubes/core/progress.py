from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


def default_data_dir() -> Path:
    return Path.home() / ".brain_cubes"


class ProgressStore:
    """Named string blobs persisted to disk across app restarts.

    File: <data_dir>/progress.json, a flat JSON object of key -> string.
    Writes are best effort: I/O errors are logged and the in-memory copy
    stays authoritative until the next successful save.
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self._file_path = Path(data_dir or default_data_dir()) / "progress.json"
        self._values = self._load()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def multi_get(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        return {key: self._values.get(key) for key in keys}

    def set(self, key: str, value: str) -> bool:
        self._values[key] = value
        return self._save()

    def multi_set(self, pairs: Iterable[Tuple[str, str]]) -> bool:
        for key, value in pairs:
            self._values[key] = value
        return self._save()

    def remove(self, key: str) -> bool:
        if self._values.pop(key, None) is None:
            return True
        return self._save()

    def multi_remove(self, keys: Iterable[str]) -> bool:
        for key in keys:
            self._values.pop(key, None)
        return self._save()

    def keys(self) -> Tuple[str, ...]:
        return tuple(self._values)

    def _load(self) -> Dict[str, str]:
        if not self._file_path.exists():
            return {}
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (ValueError, OSError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring progress file %s: expected a JSON object", self._file_path)
            return {}
        return {str(k): v for k, v in payload.items() if isinstance(v, str)}

    def _save(self) -> bool:
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(self._values, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save progress to %s: %s", self._file_path, e)
            return False
        return True
