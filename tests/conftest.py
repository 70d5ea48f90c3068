import json
from pathlib import Path

import pytest

from gst_backend.utils.config import Settings
from gst_backend.utils.errors import ExtractionError


class FakeExtractor:
    """Stands in for the external tool: writes ``output`` or fails."""

    def __init__(self, output_path: Path, payload: dict | None = None, error: str | None = None):
        self.output_path = output_path
        self.payload = payload if payload is not None else {}
        self.error = error
        self.calls: list[Path] = []

    def run(self, source: Path) -> None:
        self.calls.append(source)
        if self.error is not None:
            raise ExtractionError(self.error)
        self.output_path.write_text(json.dumps(self.payload), encoding="utf-8")


@pytest.fixture
def data_dir(tmp_path):
    directory = tmp_path / "data"
    directory.mkdir()
    return directory


@pytest.fixture
def settings(data_dir):
    return Settings(
        data_dir=data_dir,
        extraction_script=None,
        extraction_cwd=None,
        watch_enabled=False,
        _env_file=None,
    )


@pytest.fixture
def make_extractor():
    """Factory for fake extractors writing to a given output file."""
    return FakeExtractor
