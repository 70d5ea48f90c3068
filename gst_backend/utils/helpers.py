"""
Helper utilities for the GST dashboard backend.

Common functions used across domains.
"""

import json
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Tuple


def now_iso() -> str:
    """Get current timestamp as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def epoch_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def sanitize_upload_name(filename: str) -> str:
    """Collapse whitespace runs to underscores and drop directory parts."""
    name = Path(filename.replace("\\", "/")).name or "upload.pdf"
    return re.sub(r"\s+", "_", name)


def read_json(path: Path) -> Any:
    """Read and parse a JSON file."""
    return json.loads(path.read_text(encoding="utf-8"))


def dump_json(path: Path, payload: Any) -> None:
    """Persist ``payload`` as prettified JSON, replacing ``path`` atomically."""

    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.replace(path)


def file_signature(path: Path) -> Optional[Tuple[int, int]]:
    """Return ``(mtime_ns, size)`` for ``path`` or None when it is missing."""
    try:
        stats = path.stat()
    except OSError:
        return None
    return stats.st_mtime_ns, stats.st_size
