"""Write path: fingerprint units and record them in a store."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from ..config import Config
from ..core.errors import TokenprintError
from ..core.provider import TokenProvider
from ..fingerprint.kgram import KGram
from ..fingerprint.pipeline import fingerprint_unit
from ..utils.logging_setup import get_logger, log_operation
from .base import Anchor, FingerprintKey, FingerprintStore
from .memory import MemoryStore
from .sqlite_store import SQLiteStore

logger = get_logger(__name__)

# Indexers are functions that record one k-gram in a store.
Indexer = Callable[[KGram], None]


def key_for(kgram: KGram) -> FingerprintKey:
    return FingerprintKey(hash=kgram.structural_hash, value=kgram.value)


def anchor_for(kgram: KGram) -> Optional[Anchor]:
    span = kgram.span
    if span is None:
        return None
    return Anchor(
        file_path=span.file,
        start_line=span.start_line,
        start_column=span.start_column,
        end_line=span.end_line,
        end_column=span.end_column,
    )


def generate_indexer(store: FingerprintStore) -> Indexer:
    """Return a function that upserts a k-gram's anchor under its key.

    K-grams without a location (empty ones) are skipped.
    """
    def index(kgram: KGram) -> None:
        anchor = anchor_for(kgram)
        if anchor is None:
            return
        store.upsert(key_for(kgram), anchor)

    return index


def open_store(config: Optional[Config] = None) -> FingerprintStore:
    """Create the store selected by ``index.backend``."""
    config = config or Config()
    backend = config.get("index.backend", "sqlite")
    if backend == "memory":
        return MemoryStore()
    if backend == "sqlite":
        return SQLiteStore(
            config.get("index.db_path", ".tokenprint_index.db"),
            timeout=float(config.get("index.timeout_seconds", 30.0)),
        )
    raise ValueError(f"Unknown index backend: {backend}")


@dataclass
class IndexReport:
    """Outcome of indexing a batch of files."""
    fingerprints: Dict[str, int] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    duration: float = 0.0

    @property
    def files_indexed(self) -> int:
        return len(self.fingerprints)

    @property
    def total_fingerprints(self) -> int:
        return sum(self.fingerprints.values())

    @property
    def success(self) -> bool:
        return not self.errors


class FingerprintIndexer:
    """Fingerprints units and upserts them into a store."""

    def __init__(self, store: FingerprintStore, config: Optional[Config] = None,
                 unit_loader: Optional[Callable[[Path], TokenProvider]] = None):
        """
        Args:
            store: Destination store.
            config: Sizes, token filter and worker count.
            unit_loader: Builds a unit from a path; defaults to the Python
                front-end.
        """
        self.store = store
        self.config = config or Config()
        self._index = generate_indexer(store)
        if unit_loader is None:
            from ..frontend.python_unit import PythonUnit
            unit_loader = PythonUnit.from_file
        self.unit_loader = unit_loader

    def index_unit(self, unit: TokenProvider) -> List[KGram]:
        """Fingerprint one unit and record every fingerprint."""
        fingerprints = fingerprint_unit(unit, self.config)
        for kgram in fingerprints:
            self._index(kgram)
        logger.info(f"Indexed {len(fingerprints)} fingerprints from {unit.filename}")
        return fingerprints

    def index_file(self, path: Path) -> int:
        unit = self.unit_loader(Path(path))
        return len(self.index_unit(unit))

    def index_files(self, paths: Iterable[Path]) -> IndexReport:
        """Index files concurrently; failures are reported per file.

        Files are independent, so they are fingerprinted in parallel. The
        store serializes writes to the same key.
        """
        paths = [Path(p) for p in paths]
        log_operation(logger, "index_files", file_count=len(paths))
        report = IndexReport()
        start = time.time()

        max_workers = self.config.get("parallel.max_workers")
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(self.index_file, path): path for path in paths}
            for future in as_completed(futures):
                path = futures[future]
                try:
                    report.fingerprints[str(path)] = future.result()
                except (TokenprintError, OSError, UnicodeDecodeError) as e:
                    logger.warning(f"Failed to index {path}: {e}")
                    report.errors[str(path)] = str(e)

        report.duration = time.time() - start
        logger.info(
            f"Indexed {report.files_indexed} files ({report.total_fingerprints} fingerprints) "
            f"in {report.duration:.2f}s, {len(report.errors)} failures"
        )
        return report
