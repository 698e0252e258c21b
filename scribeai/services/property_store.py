"""Key-value property store for persisted configuration."""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from scribeai.core.logging import get_logger

logger = get_logger(__name__)

CUSTOM_TEMPLATES_KEY = "CUSTOM_TEMPLATES"
TRAINING_EXAMPLES_KEY = "TRAINING_EXAMPLES"
LOG_SPREADSHEET_ID_KEY = "LOG_SPREADSHEET_ID"
GCP_PROJECT_ID_KEY = "GCP_PROJECT_ID"


class PropertyStore(ABC):
    """Abstract base class for string-valued property backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Reads a property.

        Args:
            key: The property name.

        Returns:
            The stored string or None if not set.
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Stores a property, replacing any previous value.

        Args:
            key: The property name.
            value: The string to store.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Removes a property. Missing keys are ignored."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Lists all stored property names."""

    def get_json(self, key: str, default):
        """Decodes a JSON-encoded property, returning default when unset."""
        raw = self.get(key)
        if not raw:
            return default
        return json.loads(raw)

    def set_json(self, key: str, value) -> None:
        self.set(key, json.dumps(value))


class InMemoryPropertyStore(PropertyStore):
    """Process-local store, used for tests and ephemeral runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


class JsonFilePropertyStore(PropertyStore):
    """
    Stores all properties as one flat JSON object on disk.

    Read-modify-write without version checks: concurrent writers in
    different processes can overwrite each other.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            content = f.read()
        return json.loads(content) if content.strip() else {}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except Exception:
            os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)
        logger.debug(f"Property '{key}' written to {self.path}")

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._load())
