"""
File-backed document store.

Holds the in-memory snapshot of the six dashboard collections and mirrors it
to one of two JSON files:

- the primary file, written by the extraction pipeline (``gst_data.json``)
- the fallback file with the default content (``db.json``)

The primary file wins whenever it exists and parses. Precedence is decided
again on every load, and every load re-reads from disk.
"""

import copy
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from gst_backend.utils.errors import StorageReadError, ValidationError
from gst_backend.utils.helpers import dump_json, epoch_ms, file_signature, read_json

COLLECTIONS = ("sets", "articles", "trending", "plans", "aiMessages", "notifications")

Snapshot = Dict[str, List[Dict[str, Any]]]


def with_defaults(data: Dict[str, Any]) -> Snapshot:
    """Return a snapshot holding exactly the six collections."""
    snapshot: Snapshot = {}
    for name in COLLECTIONS:
        value = data.get(name)
        snapshot[name] = list(value) if isinstance(value, list) else []
    return snapshot


class DocumentStore:
    """In-memory snapshot of the dashboard collections backed by JSON files."""

    def __init__(self, primary_path: Path, fallback_path: Path):
        """
        Initialize document store.

        Args:
            primary_path: File produced by the extraction pipeline
            fallback_path: Default data file used when the primary is unusable
        """
        self.primary_path = Path(primary_path).expanduser().absolute()
        self.fallback_path = Path(fallback_path).expanduser().absolute()

        # Reentrant: persist() reloads while mutate() holds the lock
        self._lock = threading.RLock()
        self._snapshot: Snapshot = with_defaults({})
        self._extras: Dict[str, Any] = {}
        self._signatures: Dict[Path, Optional[Tuple[int, int]]] = {}
        self.last_loaded: int = 0
        self.source: Optional[Path] = None

    @property
    def watched_paths(self) -> Tuple[Path, Path]:
        return self.primary_path, self.fallback_path

    @property
    def persist_target(self) -> Path:
        """Primary file if present, else the fallback file."""
        return self.primary_path if self.primary_path.exists() else self.fallback_path

    def _read_file(self, path: Path) -> Dict[str, Any]:
        try:
            data = read_json(path)
        except FileNotFoundError as e:
            raise StorageReadError(f"{path.name} not found") from e
        except (OSError, ValueError) as e:
            raise StorageReadError(f"failed to read {path.name}: {e}") from e

        if not isinstance(data, dict):
            raise StorageReadError(f"{path.name} does not hold a JSON object")
        return data

    def _read_authoritative(self) -> Tuple[Dict[str, Any], Path]:
        try:
            return self._read_file(self.primary_path), self.primary_path
        except StorageReadError as e:
            logger.warning(f"{e}, using {self.fallback_path.name}")

        return self._read_file(self.fallback_path), self.fallback_path

    def _remember_signatures(self):
        for path in self.watched_paths:
            self._signatures[path] = file_signature(path)

    def load(self) -> Snapshot:
        """
        Reload the snapshot from disk.

        Read failures never propagate: the snapshot falls back to empty
        collections and the failure is logged.

        Returns:
            Copy of the freshly loaded snapshot
        """
        with self._lock:
            try:
                data, source = self._read_authoritative()
                logger.debug(f"Snapshot loaded from {source}")
            except StorageReadError as e:
                logger.error(f"Failed to read database: {e}")
                data, source = {}, None

            self._snapshot = with_defaults(data)
            self._extras = {key: value for key, value in data.items() if key not in COLLECTIONS}
            self.source = source
            self.last_loaded = epoch_ms()
            self._remember_signatures()
            return self.snapshot()

    def persist(self) -> Snapshot:
        """Write the snapshot to the authoritative file, then reload it."""
        with self._lock:
            target = self.persist_target
            # Keys outside the six collections survive a round trip
            dump_json(target, {**self._extras, **self._snapshot})
            logger.debug(f"Snapshot persisted to {target}")
            return self.load()

    def mutate(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append ``record`` to ``collection`` and persist.

        Raises:
            ValidationError: Unknown collection name
        """
        if collection not in COLLECTIONS:
            raise ValidationError(f"Unknown collection: {collection}")

        with self._lock:
            self._snapshot[collection].append(record)
            self.persist()
        return record

    def snapshot(self) -> Snapshot:
        with self._lock:
            return copy.deepcopy(self._snapshot)

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return {name: len(self._snapshot[name]) for name in COLLECTIONS}

    def is_stale(self, path: Path) -> bool:
        """True when ``path`` changed on disk since this store last read or wrote it."""
        path = Path(path).absolute()
        with self._lock:
            return self._signatures.get(path) != file_signature(path)
