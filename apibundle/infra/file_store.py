"""
Sectioned JSON index for the local catalog.

The index is one JSON object of sections (``apis``, ``documents``,
``definitions``, ``media_types``, ``permissions``), each mapping a key
to a value. Every change rewrites the whole file through a temp file
and ``os.replace``, so a crash never leaves a half-written index.

Several processes may share one catalog. Each read-modify-write runs
under an exclusive ``flock`` on ``<index>.lock`` and starts from the
file on disk, so one store never writes back another's stale view.
"""

import copy
import fcntl
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Tuple
import logging

from ..errors import CatalogError

logger = logging.getLogger(__name__)


def _dump_atomic(path: Path, data: Dict[str, Any]) -> None:
    # Temp file sits beside the target so os.replace stays on one filesystem
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
            f.write('\n')
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


class FileStore:
    """
    Two-level JSON mapping (section -> key -> value) kept in one file.

    Example:
        index = FileStore(Path("~/.apibundle/catalog/catalog.json"))
        index.set_entry("apis", "acme--Weather--1.0", {...})
        entry = index.get_entry("apis", "acme--Weather--1.0")
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser().resolve()
        self.lock_path = self.path.with_name(self.path.name + '.lock')
        self._lock = threading.RLock()
        self._lock_depth = 0
        self._lock_file = None
        self._data: Optional[Dict[str, Any]] = None
        self._signature: Optional[Tuple[int, int, int]] = None

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._exclusive():
            if not self.path.exists():
                _dump_atomic(self.path, {})

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the thread lock and the inter-process file lock."""
        with self._lock:
            if self._lock_depth == 0:
                self._lock_file = open(self.lock_path, 'a')
                fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_EX)
            self._lock_depth += 1
            try:
                yield
            finally:
                self._lock_depth -= 1
                if self._lock_depth == 0:
                    fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
                    self._lock_file.close()
                    self._lock_file = None

    def _file_signature(self) -> Optional[Tuple[int, int, int]]:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return (stat.st_ino, stat.st_mtime_ns, stat.st_size)

    def _current(self) -> Dict[str, Any]:
        """Index contents, re-read whenever the file changed on disk."""
        signature = self._file_signature()
        if self._data is None or signature != self._signature:
            self._data = self._read_file() if signature is not None else {}
            self._signature = signature
        return self._data

    def _read_file(self) -> Dict[str, Any]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Catalog index {self.path} is unreadable: {e}")
            raise CatalogError(f"Catalog index {self.path} is unreadable: {e}") from e
        if not isinstance(data, dict):
            logger.error(f"Catalog index {self.path} is not a JSON object")
            raise CatalogError(f"Catalog index {self.path} is not a JSON object")
        return data

    def _commit(self, data: Dict[str, Any]) -> None:
        _dump_atomic(self.path, data)
        self._data = data
        self._signature = self._file_signature()

    def get_entry(self, section: str, key: str, default: Any = None) -> Any:
        """Return a copy of one value, or ``default`` when absent."""
        with self._lock:
            value = self._current().get(section, {}).get(key, default)
            return copy.deepcopy(value)

    def has_entry(self, section: str, key: str) -> bool:
        with self._lock:
            return key in self._current().get(section, {})

    def set_entry(self, section: str, key: str, value: Any) -> None:
        """Store one value and persist the whole index."""
        with self._exclusive():
            data = copy.deepcopy(self._current())
            data.setdefault(section, {})[key] = copy.deepcopy(value)
            self._commit(data)

    def insert_entry(self, section: str, key: str, value: Any) -> bool:
        """
        Store a value only if the key is absent.

        Returns:
            False if another writer already holds the key
        """
        with self._exclusive():
            data = copy.deepcopy(self._current())
            entries = data.setdefault(section, {})
            if key in entries:
                return False
            entries[key] = copy.deepcopy(value)
            self._commit(data)
            return True

    def update_entry(self, section: str, key: str,
                     update: Callable[[Any], Any], default: Any = None) -> Any:
        """
        Replace a value with ``update(current)`` under the index lock.

        An exception from ``update`` leaves the index untouched.
        """
        with self._exclusive():
            data = copy.deepcopy(self._current())
            entries = data.setdefault(section, {})
            new_value = update(copy.deepcopy(entries.get(key, default)))
            entries[key] = new_value
            self._commit(data)
            return copy.deepcopy(new_value)
