"""Fingerprint index: store contract, backends, write and read paths."""

from .base import Anchor, FingerprintDocument, FingerprintKey, FingerprintStore
from .memory import MemoryStore
from .sqlite_store import SQLiteStore
from .indexer import FingerprintIndexer, IndexReport, generate_indexer, open_store
from .matching import Match, SimilarityMatrix, corpus_similarity, find_matches, similarity

__all__ = [
    "Anchor",
    "FingerprintDocument",
    "FingerprintKey",
    "FingerprintStore",
    "MemoryStore",
    "SQLiteStore",
    "FingerprintIndexer",
    "IndexReport",
    "generate_indexer",
    "open_store",
    "Match",
    "SimilarityMatrix",
    "corpus_similarity",
    "find_matches",
    "similarity",
]
