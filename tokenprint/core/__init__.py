"""Core types, errors, provider protocol and file collection."""

from .types import DeclarationId, EditSpan, SourceLocation, SourceSpan, Token, TokenKind, UnsavedFile
from .errors import (
    CompilationError,
    ConfigError,
    DuplicateKeyError,
    NoReferenceFound,
    StoreError,
    TokenprintError,
)
from .provider import TokenPredicate, TokenProvider, exclude_kinds, include_kinds

__all__ = [
    "DeclarationId",
    "EditSpan",
    "SourceLocation",
    "SourceSpan",
    "Token",
    "TokenKind",
    "UnsavedFile",
    "CompilationError",
    "ConfigError",
    "DuplicateKeyError",
    "NoReferenceFound",
    "StoreError",
    "TokenprintError",
    "TokenPredicate",
    "TokenProvider",
    "exclude_kinds",
    "include_kinds",
]
