"""File-backed entry store — a single JSON array document on disk.

Appends are a read-modify-write of the whole document, serialized by a
lock and committed with an atomic tmp + os.replace. Reads never fail:
a missing, empty or corrupt document reads as an empty collection.
"""

import json
import logging
import os
import tempfile
import threading

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the entry document cannot be written or removed."""


class EntryStore:
    """Append-only collection of log entries persisted as one JSON document."""

    def __init__(self, path: str):
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    def append(self, entries: list[dict]) -> None:
        """Append *entries* to the persisted collection in one write.

        Raises:
            StoreError: if the document cannot be written.
        """
        with self._lock:
            existing = self._read()
            self._write(existing + list(entries))

    def read_all(self) -> list[dict]:
        """Return every persisted entry, or [] if the document is unusable."""
        with self._lock:
            return self._read()

    def clear(self) -> None:
        """Remove the backing document. A missing document is not an error."""
        with self._lock:
            try:
                os.unlink(self._path)
            except FileNotFoundError:
                pass
            except OSError as e:
                raise StoreError(f"Failed to remove {self._path}: {e}") from e

    def _read(self) -> list[dict]:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            logger.warning("Unreadable log document %s, treating as empty: %s",
                           self._path, e)
            return []

        if not isinstance(data, list):
            logger.warning("Log document %s is not a JSON array, treating as empty",
                           self._path)
            return []
        return data

    def _write(self, entries: list[dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self._path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=directory, suffix=".tmp")
        except OSError as e:
            raise StoreError(f"Failed to write {self._path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entries, f, indent=2)
            os.replace(tmp, self._path)
        except (OSError, TypeError, ValueError) as e:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise StoreError(f"Failed to write {self._path}: {e}") from e
