"""K-gram value type and its two comparison notions.

A k-gram is compared in two independent ways:

* ``structural_hash`` looks only at token kinds, so fragments that differ in
  identifier names collide. This is what makes fingerprints resistant to
  renaming.
* ``exact_equal`` compares token spellings and is only used to drop adjacent
  repeats while winnowing.

Both are plain functions instead of ``__hash__``/``__eq__`` overloads: equal
structural hashes do not imply equal k-grams, which would break the contract
of dicts and sets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, TypeVar

from ..core.provider import TokenProvider
from ..core.types import SourceLocation, SourceSpan, Token

T = TypeVar("T")

_MASK64 = (1 << 64) - 1
_SIGN64 = 1 << 63


def djb2_hash(text: str) -> int:
    """Signed 64-bit djb2 hash.

    hash(0) = 5381
    hash(i) = hash(i - 1) * 33 + str[i]   (wrapping at 64 bits)
    """
    h = 5381
    for ch in text:
        h = ((h << 5) + h + ord(ch)) & _MASK64
    return h - (1 << 64) if h & _SIGN64 else h


def slices(items: Sequence[T], w: int) -> List[Sequence[T]]:
    """Return all consecutive windows of size ``w``.

    If ``w`` is bigger than the number of items, the whole sequence is
    returned as the only window. An empty sequence gives one empty window;
    callers decide what that means.
    """
    if w < 1:
        raise ValueError(f"window size must be >= 1, got {w}")
    if len(items) < w:
        return [items[:]]
    # last index where a full window still fits: last + w - 1 <= len - 1
    last = len(items) - w
    return [items[idx:idx + w] for idx in range(last + 1)]


@dataclass(frozen=True, eq=False)
class KGram:
    """A run of consecutive tokens from one unit."""

    tokens: Tuple[Token, ...]
    unit: Optional[TokenProvider] = None

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def count(self) -> int:
        return len(self.tokens)

    @property
    def kinds(self) -> List[str]:
        return [token.kind.value for token in self.tokens]

    @property
    def spellings(self) -> List[str]:
        return [token.spelling for token in self.tokens]

    @property
    def value(self) -> str:
        """Kind names joined by spaces; the persisted document value."""
        return " ".join(self.kinds)

    @property
    def structural_hash(self) -> int:
        return djb2_hash("".join(self.kinds))

    @property
    def start(self) -> Optional[SourceLocation]:
        if not self.tokens:
            return None
        return self.tokens[0].span.start

    @property
    def end(self) -> Optional[SourceLocation]:
        if not self.tokens:
            return None
        return self.tokens[-1].span.end

    @property
    def span(self) -> Optional[SourceSpan]:
        """Span from the first token start to the last token end."""
        if not self.tokens:
            return None
        first = self.tokens[0].span
        last = self.tokens[-1].span
        return SourceSpan(
            file=first.file,
            start_line=first.start_line,
            start_column=first.start_column,
            end_line=last.end_line,
            end_column=last.end_column,
            start_offset=first.start_offset,
            end_offset=last.end_offset,
        )

    @property
    def document(self) -> Optional[Dict[str, Any]]:
        """Anchor document for this k-gram, or ``None`` without a location."""
        start, end = self.start, self.end
        if start is None or end is None:
            return None
        return {
            "file_path": start.file,
            "start": start.to_document(),
            "end": end.to_document(),
        }

    def same_spelling(self, other: "KGram") -> bool:
        return self.spellings == other.spellings

    def __repr__(self) -> str:
        return f"KGram({' '.join(self.spellings)!r})"


def structural_hash(kgram: KGram) -> int:
    """Hash over token kinds only."""
    return kgram.structural_hash


def exact_equal(lhs: KGram, rhs: KGram) -> bool:
    """True iff both k-grams have identical token spellings in order."""
    return lhs.same_spelling(rhs)
