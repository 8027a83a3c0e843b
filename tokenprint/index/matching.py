"""Read path: find where a unit's fingerprints were seen before."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
from scipy import sparse

from ..config import Config
from ..core.provider import TokenProvider
from ..fingerprint.kgram import KGram
from ..fingerprint.pipeline import fingerprint_unit
from ..utils.logging_setup import get_logger
from .base import Anchor, FingerprintKey, FingerprintStore
from .indexer import anchor_for, key_for

logger = get_logger(__name__)


@dataclass
class Match:
    """A fingerprint of the queried unit and where else it was recorded."""
    fingerprint: KGram
    local: Anchor
    others: List[Anchor] = field(default_factory=list)

    @property
    def key(self) -> FingerprintKey:
        return key_for(self.fingerprint)

    @property
    def files(self) -> List[str]:
        return list(dict.fromkeys(anchor.file_path for anchor in self.others))


def find_matches(unit: TokenProvider, store: FingerprintStore,
                 config: Optional[Config] = None) -> List[Match]:
    """Look up every fingerprint of ``unit`` in ``store``.

    Anchors in the unit's own file are left out unless
    ``matching.exclude_same_file`` is false.
    """
    config = config or Config()
    exclude_same_file = config.get("matching.exclude_same_file", True)

    matches: List[Match] = []
    for kgram in fingerprint_unit(unit, config):
        local = anchor_for(kgram)
        if local is None:
            continue
        document = store.lookup(key_for(kgram))
        if document is None:
            continue
        others = [
            anchor for anchor in document.anchors
            if not (exclude_same_file and anchor.file_path == local.file_path)
        ]
        if others:
            matches.append(Match(kgram, local, others))

    logger.debug(f"{unit.filename}: {len(matches)} fingerprints seen elsewhere")
    return matches


def similarity(unit: TokenProvider, store: FingerprintStore,
               config: Optional[Config] = None) -> Dict[str, float]:
    """Share of the unit's distinct fingerprint keys found in each other file.

    Files sharing fewer than ``matching.min_shared_fingerprints`` keys are
    dropped. Results are sorted by decreasing score.
    """
    config = config or Config()
    min_shared = config.get("matching.min_shared_fingerprints", 1)

    keys = {key_for(kgram) for kgram in fingerprint_unit(unit, config)}
    if not keys:
        return {}

    shared = {
        (file_path, match.key)
        for match in find_matches(unit, store, config)
        for file_path in match.files
    }

    per_file: Counter = Counter(file_path for file_path, _ in shared)
    scores = {
        file_path: count / len(keys)
        for file_path, count in per_file.items()
        if count >= min_shared
    }
    return dict(sorted(scores.items(), key=lambda item: (-item[1], item[0])))


@dataclass
class SimilarityMatrix:
    """Pairwise Jaccard similarity of the files recorded in a store."""
    files: List[str]
    matrix: np.ndarray

    def score(self, a: str, b: str) -> float:
        return float(self.matrix[self.files.index(a), self.files.index(b)])

    def pairs(self, threshold: float = 0.0) -> List[Tuple[str, str, float]]:
        """Distinct file pairs scoring at least ``threshold``, best first."""
        rows, cols = np.triu_indices(len(self.files), k=1)
        out = [
            (self.files[i], self.files[j], float(self.matrix[i, j]))
            for i, j in zip(rows, cols)
            if self.matrix[i, j] >= threshold and self.matrix[i, j] > 0
        ]
        return sorted(out, key=lambda item: (-item[2], item[0], item[1]))


def corpus_similarity(store: FingerprintStore) -> SimilarityMatrix:
    """Compare every pair of indexed files by their shared fingerprint keys.

    Builds a sparse file x key incidence matrix; its Gram matrix gives the
    intersection sizes.
    """
    file_ids: Dict[str, int] = {}
    rows: List[int] = []
    cols: List[int] = []

    for col, document in enumerate(store.documents()):
        for file_path in document.files:
            row = file_ids.setdefault(file_path, len(file_ids))
            rows.append(row)
            cols.append(col)

    files = list(file_ids)
    if not files:
        return SimilarityMatrix(files=[], matrix=np.zeros((0, 0)))

    incidence = sparse.csr_matrix(
        (np.ones(len(rows), dtype=np.float64), (rows, cols)),
        shape=(len(files), max(cols) + 1),
    )
    intersection = (incidence @ incidence.T).toarray()
    sizes = np.diag(intersection)
    union = sizes[:, None] + sizes[None, :] - intersection
    with np.errstate(divide="ignore", invalid="ignore"):
        jaccard = np.where(union > 0, intersection / union, 0.0)

    return SimilarityMatrix(files=files, matrix=jaccard)
