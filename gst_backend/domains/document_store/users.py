"""User registry persisted to its own JSON file."""

import copy
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from gst_backend.utils.errors import StorageReadError, ValidationError
from gst_backend.utils.helpers import dump_json, epoch_ms, file_signature, now_iso, read_json


class UserRegistry:
    """Ordered list of registered users with load/persist semantics like the store."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser().absolute()

        self._lock = threading.RLock()
        self._users: List[Dict[str, Any]] = []
        self._signature: Optional[Tuple[int, int]] = None
        self.last_loaded: int = 0

    @property
    def watched_paths(self) -> Tuple[Path]:
        return (self.path,)

    def _read(self) -> List[Dict[str, Any]]:
        try:
            data = read_json(self.path)
        except FileNotFoundError as e:
            raise StorageReadError(f"{self.path.name} not found") from e
        except (OSError, ValueError) as e:
            raise StorageReadError(f"failed to read {self.path.name}: {e}") from e

        if not isinstance(data, list):
            raise StorageReadError(f"{self.path.name} does not hold a JSON array")
        return data

    def load(self) -> List[Dict[str, Any]]:
        """Reload the registry from disk; unreadable files yield an empty list."""
        with self._lock:
            try:
                users = self._read()
            except StorageReadError as e:
                logger.debug(f"Users defaulted to empty: {e}")
                users = []

            self._users = users
            self._signature = file_signature(self.path)
            self.last_loaded = epoch_ms()
            return self.users()

    def persist(self) -> List[Dict[str, Any]]:
        with self._lock:
            dump_json(self.path, self._users)
            return self.load()

    def _next_id(self) -> str:
        taken = {str(user.get("id")) for user in self._users if isinstance(user, dict)}
        candidate = epoch_ms()
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def create(
        self,
        phone: Optional[str],
        name: str = "",
        email: str = "",
        company: str = "",
        notes: str = "",
    ) -> Dict[str, Any]:
        """
        Register a new user.

        Args:
            phone: Required phone identifier
            name: Optional display name
            email: Optional email address
            company: Optional company name
            notes: Optional free-form notes

        Returns:
            The created user record

        Raises:
            ValidationError: ``phone`` is missing or empty
        """
        if not phone:
            raise ValidationError("phone is required")

        with self._lock:
            entry = {
                "id": self._next_id(),
                "phone": phone,
                "name": name,
                "email": email,
                "company": company,
                "notes": notes,
                "createdAt": now_iso(),
            }
            self._users.append(entry)
            self.persist()

        logger.info(f"User registered: {entry['id']}")
        return entry

    def users(self) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._users)

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def is_stale(self, path: Path) -> bool:
        with self._lock:
            return self._signature != file_signature(self.path)
