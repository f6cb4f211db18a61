"""
Persistent client storage

The session token and user record live in a small string key/value store.
Backends: signed cookie session (web), JSON file (CLI), in-memory (tests).
"""
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, MutableMapping, Optional

import structlog

logger = structlog.get_logger()

AUTH_TOKEN_KEY = "auth_token"
USER_KEY = "user"


class Storage(ABC):
    """String key/value storage with localStorage semantics"""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass

    def __contains__(self, key: str) -> bool:
        return self.get_item(key) is not None


class MemoryStorage(Storage):
    """In-process storage"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())


class SessionStorage(Storage):
    """
    Storage backed by a request session mapping.

    With Starlette's SessionMiddleware the mapping is serialized into a
    signed cookie, so values persist in the browser between requests.
    """

    def __init__(self, session: MutableMapping[str, str]):
        self._session = session

    def get_item(self, key: str) -> Optional[str]:
        value = self._session.get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        self._session[key] = value

    def remove_item(self, key: str) -> None:
        self._session.pop(key, None)


class FileStorage(Storage):
    """JSON file storage used by the command-line client"""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Unreadable session file, starting empty", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        self.path.chmod(0o600)

    def get_item(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
