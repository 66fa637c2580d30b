"""
Flat-file data store for the local (mock) ledger.

Each collection is one JSON array on disk: users.json, audits.json,
reports.json under the configured data directory. A missing file is an
empty collection and gets created on first load.

Writes go to a temp file next to the target and are swapped in with
os.replace(), so a reader never sees half a file. Every collection has
its own lock; transaction() holds it across a whole load -> modify ->
save cycle so two requests appending at once don't lose an entry.
Writers in other processes are not coordinated.
"""

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from audit_api.errors import StorageError

logger = logging.getLogger(__name__)


class FlatFileStore:
    """Load and save whole collections as JSON arrays."""

    def __init__(self, data_dir: str | os.PathLike):
        self.data_dir = Path(data_dir)
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def _lock(self, name: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.RLock()
            return lock

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def load(self, name: str) -> list[dict]:
        """Return the records persisted under `name`, in stored order."""
        with self._lock(name):
            path = self.path_for(name)
            try:
                raw = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                logger.info("Collection '%s' not found, creating %s", name, path)
                self._write(name, [])
                return []
            except OSError as e:
                logger.error("Failed to read collection '%s': %s", name, e)
                raise StorageError(f"Failed to read collection '{name}': {e}") from e

            try:
                records = json.loads(raw)
            except json.JSONDecodeError as e:
                raise StorageError(f"Collection '{name}' is not valid JSON: {e}") from e
            if not isinstance(records, list):
                raise StorageError(f"Collection '{name}' must be a JSON array")

            logger.debug("Loaded %d record(s) from '%s'", len(records), name)
            return records

    def save(self, name: str, records: list[dict]) -> None:
        """Replace the whole collection with `records`."""
        with self._lock(name):
            self._write(name, records)

    @contextmanager
    def transaction(self, name: str) -> Iterator[list[dict]]:
        """Yield the loaded collection; save it back if the block succeeds.

        The collection lock is held for the whole block. If the block
        raises, nothing is written.
        """
        with self._lock(name):
            records = self.load(name)
            yield records
            self._write(name, records)

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _write(self, name: str, records: list[dict]) -> None:
        path = self.path_for(name)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.data_dir)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(records, f, indent=2)
                os.replace(tmp, path)
            except BaseException:
                # Leave no stray temp files behind on failure
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write collection '%s': %s", name, e)
            raise StorageError(f"Failed to write collection '{name}': {e}") from e

        logger.debug("Saved %d record(s) to '%s'", len(records), name)
