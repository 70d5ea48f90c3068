"""
Upload ingestion.

Every upload follows the same path regardless of transport encoding:

    received -> saved -> extracting -> extracted | extraction_failed

The file stays in the uploads directory even when extraction fails.
"""

import base64
import binascii
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from gst_backend.domains.file_ingest.processors.extraction import (
    ExtractionBridge,
    ExtractionSummary,
)
from gst_backend.utils.errors import ExtractionError, ValidationError
from gst_backend.utils.helpers import epoch_ms, sanitize_upload_name


class UploadState(str, Enum):
    RECEIVED = "received"
    SAVED = "saved"
    EXTRACTING = "extracting"
    EXTRACTED = "extracted"
    EXTRACTION_FAILED = "extraction_failed"


@dataclass
class UploadResult:
    """Outcome of one upload: where it was saved and how extraction went."""

    file_name: str
    path: Path
    state: UploadState
    summary: Optional[ExtractionSummary] = None
    error: Optional[str] = None

    @property
    def extracted(self) -> bool:
        return self.state is UploadState.EXTRACTED

    def summary_fields(self) -> Dict[str, Any]:
        return self.summary.as_json_ready() if self.summary else {}


def decode_base64_payload(data: str) -> bytes:
    """
    Decode a base64 payload, tolerating a ``data:...;base64,`` prefix.

    Raises:
        ValidationError: Payload is not valid base64
    """
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"data is not valid base64: {e}") from e


class UploadIngestor:
    """Save uploads under collision-resistant names and hand them to extraction."""

    def __init__(self, uploads_dir: Path, bridge: ExtractionBridge):
        self.uploads_dir = Path(uploads_dir)
        self.bridge = bridge

    def save(self, original_name: str, payload: bytes) -> Path:
        """
        Write ``payload`` as ``{timestamp}-{sanitized name}``.

        The timestamp is bumped until the name is free, so identical original
        names never overwrite each other.
        """
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        name = sanitize_upload_name(original_name)
        stamp = epoch_ms()

        while True:
            dest = self.uploads_dir / f"{stamp}-{name}"
            try:
                with dest.open("xb") as handle:
                    handle.write(payload)
                return dest
            except FileExistsError:
                stamp += 1

    def ingest(self, original_name: str, payload: bytes) -> UploadResult:
        """
        Save an upload and run extraction on it.

        Extraction failures are captured in the result, never raised.
        """
        logger.info(f"Upload {UploadState.RECEIVED.value}: {original_name} ({len(payload)} bytes)")

        dest = self.save(original_name, payload)
        result = UploadResult(file_name=dest.name, path=dest, state=UploadState.SAVED)
        logger.info(f"Upload {result.state.value}: {dest}")

        result.state = UploadState.EXTRACTING
        try:
            result.summary = self.bridge.extract(dest)
            result.state = UploadState.EXTRACTED
        except ExtractionError as e:
            result.state = UploadState.EXTRACTION_FAILED
            result.error = e.message
            logger.warning(f"Extraction failed for {dest.name}: {e.message}")

        logger.info(f"Upload {result.state.value}: {dest.name}")
        return result
