"""tokenprint - Winnowed token fingerprints and reference-aware renaming."""

__version__ = "0.1.0"

from .core.errors import NoReferenceFound, TokenprintError
from .core.types import DeclarationId, Token, TokenKind, UnsavedFile
from .fingerprint import KGram, exact_equal, extract, fingerprint_unit, structural_hash, winnow
from .frontend import PythonUnit
from .refactor import rename_identifier

__all__ = [
    "NoReferenceFound",
    "TokenprintError",
    "DeclarationId",
    "Token",
    "TokenKind",
    "UnsavedFile",
    "KGram",
    "exact_equal",
    "extract",
    "fingerprint_unit",
    "structural_hash",
    "winnow",
    "PythonUnit",
    "rename_identifier",
    "__version__",
]
