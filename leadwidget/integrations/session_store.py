"""Durable client-side key/value storage for the assistant thread handle."""

import json
import logging
from pathlib import Path
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemorySessionStore:
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileSessionStore:
    """Keeps values in a small JSON file so they survive process restarts."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
