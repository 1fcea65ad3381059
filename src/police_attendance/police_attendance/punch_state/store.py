from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Local persistent key/value storage for serialized punch state."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryStateStore(StateStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStateStore(StateStore):
    """All keys in one JSON file, rewritten atomically on each change.

    Shared by every worker on the host with no cross-process locking: last writer wins.
    A file that cannot be parsed is moved aside to `<name>.corrupt` and treated as empty.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def corrupt_path(self) -> Path:
        return self._path.with_name(self._path.name + ".corrupt")

    def _load(self) -> Dict[str, str]:
        """Raises OSError when the file exists but cannot be read."""

        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw.decode("utf-8") or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._set_aside(str(e))
            return {}
        if not isinstance(data, dict):
            self._set_aside(f"expected an object, got {type(data).__name__}")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _set_aside(self, reason: str) -> None:
        logger.error("punch state file %s is corrupt (%s), moving it to %s", self._path, reason, self.corrupt_path)
        os.replace(self._path, self.corrupt_path)

    def _save(self, data: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".punch_state_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp, self._path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            try:
                data = self._load()
            except OSError as e:
                logger.warning("punch state file %s unreadable: %s", self._path, e)
                return None
            return data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if data.pop(key, None) is not None:
                self._save(data)
