"""
Key-value store implementations.
Both stores keep plain strings; callers serialize their own payloads.
"""

import threading
from pathlib import Path
from typing import Dict, Optional

from pipassist.exceptions import FileSystemError, StorageError
from pipassist.interfaces import KeyValueStoreInterface
from pipassist.utils.logging_utils import LoggerMixin
from pipassist.utils.yaml_utils import YamlUtils


class InMemoryStore(KeyValueStoreInterface):
    """Dictionary-backed store, used in tests and for throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Store values must be strings, got {type(value).__name__}")
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())


class YamlFileStore(KeyValueStoreInterface, LoggerMixin):
    """Flat key to string mapping persisted in a YAML file.

    The file is re-read on every access, so two processes sharing a file see
    each other's writes; concurrent writers are not coordinated and the last
    write wins.
    """

    def __init__(self, path: str):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read().get(key)
        if value is not None and not isinstance(value, str):
            raise StorageError(f"Stored value for '{key}' is not a string")
        return value

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Store values must be strings, got {type(value).__name__}")
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)
        self.logger.debug(f"Stored key '{key}' in {self.path}")

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def keys(self):
        with self._lock:
            return list(self._read().keys())

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = YamlUtils.load_yaml(str(self.path))
        except FileSystemError as e:
            raise StorageError(f"Could not read store file {self.path}", str(e))
        if not isinstance(data, dict):
            raise StorageError(f"Store file {self.path} does not contain a mapping")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        try:
            YamlUtils.save_yaml(data, str(self.path))
        except FileSystemError as e:
            raise StorageError(f"Could not write store file {self.path}", str(e))
