from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
THEME_KEY = "theme"


class StateStore(Protocol):
    def get(self, key: str) -> Any: ...

    def put(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class LocalStateStore:
    """Durable key/value state kept in a small JSON file next to the user's profile."""

    def __init__(self, path: str | Path | None = None) -> None:
        raw_path = path or os.getenv("BUDGETSYNC_STATE_PATH") or Path.home() / ".budgetsync" / "state.json"
        self._path = Path(raw_path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def put(self, key: str, value: Any) -> None:
        state = self._read()
        state[key] = value
        self._write(state)

    def delete(self, key: str) -> None:
        state = self._read()
        if key not in state:
            return
        del state[key]
        self._write(state)

    def _read(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("LocalStateStore ignoring unreadable state file path=%s", self._path)
            return {}
        return parsed if isinstance(parsed, dict) else {}

    def _write(self, state: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(json.dumps(state, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self._path)


class InMemoryStateStore:
    def __init__(self, initial: dict[str, Any] | None = None):
        self._store: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._store.get(key)

    def put(self, key: str, value: Any) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)
