"""Shared data structures for tokens, locations and edit results.

These types are the single vocabulary used by the front-ends, the fingerprint
engine, the index and the refactorer. All of them are immutable value objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class TokenKind(Enum):
    """Generic token class, independent of the source language."""
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    LITERAL = "literal"
    PUNCTUATION = "punctuation"
    COMMENT = "comment"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SourceLocation:
    """A point in a source file. Lines and columns are 1-based."""
    file: str
    line: int
    column: int
    offset: int = 0

    def to_document(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True)
class SourceSpan:
    """A half-open range of a source file.

    ``start_offset``/``end_offset`` index the unit's text buffer; the end is
    exclusive.
    """
    file: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    start_offset: int
    end_offset: int

    @property
    def start(self) -> SourceLocation:
        return SourceLocation(self.file, self.start_line, self.start_column, self.start_offset)

    @property
    def end(self) -> SourceLocation:
        return SourceLocation(self.file, self.end_line, self.end_column, self.end_offset)

    def contains(self, line: int, column: int) -> bool:
        """Tell whether a 1-based ``(line, column)`` position falls in the span."""
        if (line, column) < (self.start_line, self.start_column):
            return False
        return (line, column) < (self.end_line, self.end_column)


@dataclass(frozen=True)
class Token:
    """A single lexical token as produced by a front-end."""
    kind: TokenKind
    spelling: str
    span: SourceSpan

    @property
    def location(self) -> SourceLocation:
        return self.span.start

    def __str__(self) -> str:
        return self.spelling


@dataclass(frozen=True)
class DeclarationId:
    """Opaque identity of a declaration as reported by a reference resolver.

    Two occurrences refer to the same entity iff their identities compare
    equal. ``scope`` is the qualified path of the declaring scope.
    """
    scope: str
    name: str

    def __str__(self) -> str:
        return f"{self.scope}::{self.name}"


@dataclass(frozen=True)
class UnsavedFile:
    """In-memory revision of a file; never written to disk by this package."""
    filename: str
    contents: str

    def to_dict(self) -> Dict[str, Any]:
        return {"filename": self.filename, "contents": self.contents}


@dataclass(frozen=True)
class EditSpan:
    """Replace ``[start, end)`` of the original buffer with ``replacement``."""
    start: int
    end: int
    replacement: str

    @property
    def delta(self) -> int:
        """Change in buffer length caused by this edit."""
        return len(self.replacement) - (self.end - self.start)
