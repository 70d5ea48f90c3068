"""
Extraction pipeline bridge.

The backend depends only on the ``Extractor`` port. ``SubprocessExtractor``
is the production adapter: it runs the external extraction tool, which reads
an uploaded document and writes a new primary data file. After a successful
run the document store is reloaded and an article summary is returned.
"""

import subprocess
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from loguru import logger

from gst_backend.domains.document_store.store import DocumentStore
from gst_backend.utils.errors import ExtractionError


@dataclass
class ExtractionSummary:
    """Article totals after an extraction run."""

    total_articles: int
    categories: Dict[str, int] = field(default_factory=dict)

    def as_json_ready(self) -> Dict[str, object]:
        return {"totalArticles": self.total_articles, "categories": dict(self.categories)}


def summarize_articles(articles: List[Dict[str, Any]]) -> ExtractionSummary:
    """Count articles per category, ``Other`` when the field is missing."""
    categories = Counter()
    for article in articles:
        category = article.get("category") if isinstance(article, dict) else None
        if not category:
            category = "Other"
        elif not isinstance(category, str):
            category = str(category)
        categories[category] += 1
    return ExtractionSummary(total_articles=len(articles), categories=dict(categories))


class Extractor(Protocol):
    """Runs extraction for one source file; raises ExtractionError on failure."""

    def run(self, source: Path) -> None: ...


class SubprocessExtractor:
    """Invoke the external extraction tool as ``<command> <source> --output <path>``."""

    def __init__(
        self,
        command: Sequence[str],
        output_path: Path,
        cwd: Optional[Path] = None,
        timeout: Optional[float] = 300.0,
    ):
        """
        Initialize subprocess extractor.

        Args:
            command: Executable and leading arguments (e.g. python3 + script)
            output_path: File the tool writes, normally the primary data file
            cwd: Working directory for the tool
            timeout: Seconds before the tool is killed; None waits forever
        """
        self.command = list(command)
        self.output_path = Path(output_path)
        self.cwd = Path(cwd) if cwd else None
        self.timeout = timeout

    def build_args(self, source: Path) -> List[str]:
        return [*self.command, str(source), "--output", str(self.output_path)]

    def run(self, source: Path) -> None:
        args = self.build_args(source)
        logger.info(f"Running extraction: {' '.join(args)}")

        try:
            result = subprocess.run(
                args,
                cwd=self.cwd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ExtractionError(f"Extraction timed out after {self.timeout} seconds") from e
        except OSError as e:
            raise ExtractionError(f"Could not start extraction: {e}") from e

        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        if result.returncode != 0:
            logger.warning(f"Extraction exited with code {result.returncode}")
            raise ExtractionError(stderr or "Extraction failed")

        if stderr:
            logger.debug(f"Extraction diagnostics: {stderr}")


class ExtractionBridge:
    """Run an extractor and fold its output back into the document store."""

    def __init__(self, extractor: Extractor, store: DocumentStore):
        self.extractor = extractor
        self.store = store

    def extract(self, source: Path) -> ExtractionSummary:
        """
        Extract ``source`` and reload the store.

        Raises:
            ExtractionError: The extractor failed; the store is left untouched
        """
        self.extractor.run(Path(source))

        snapshot = self.store.load()
        summary = summarize_articles(snapshot["articles"])
        logger.success(f"Extracted {summary.total_articles} articles from {Path(source).name}")
        return summary
