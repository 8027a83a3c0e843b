"""K-gram extraction and winnowing."""

from .kgram import KGram, djb2_hash, exact_equal, slices, structural_hash
from .extractor import extract
from .winnowing import winnow
from .pipeline import fingerprint_tokens, fingerprint_unit

__all__ = [
    "KGram",
    "djb2_hash",
    "exact_equal",
    "slices",
    "structural_hash",
    "extract",
    "winnow",
    "fingerprint_tokens",
    "fingerprint_unit",
]
