"""Fingerprint store contract and persisted document shape.

Persisted document::

    {
      "key": {"hash": <structural hash>, "value": <kind names>},
      "file_anchors": [
        {"file_path": ..., "start": {"line": .., "column": ..},
                           "end": {"line": .., "column": ..}},
        ...
      ]
    }
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from ..core.errors import DuplicateKeyError


@dataclass(frozen=True)
class FingerprintKey:
    """Store key: structural hash plus the structural value it was computed from."""
    hash: int
    value: str

    def to_document(self) -> Dict[str, Any]:
        return {"hash": self.hash, "value": self.value}

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "FingerprintKey":
        return cls(hash=int(data["hash"]), value=str(data["value"]))


@dataclass(frozen=True)
class Anchor:
    """Source location recorded against a fingerprint key."""
    file_path: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def to_document(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "start": {"line": self.start_line, "column": self.start_column},
            "end": {"line": self.end_line, "column": self.end_column},
        }

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Anchor":
        return cls(
            file_path=data["file_path"],
            start_line=data["start"]["line"],
            start_column=data["start"]["column"],
            end_line=data["end"]["line"],
            end_column=data["end"]["column"],
        )


@dataclass
class FingerprintDocument:
    """A key and every anchor recorded for it, in insertion order."""
    key: FingerprintKey
    anchors: List[Anchor] = field(default_factory=list)

    @property
    def files(self) -> List[str]:
        """Distinct files among the anchors, in first-seen order."""
        return list(dict.fromkeys(anchor.file_path for anchor in self.anchors))

    def to_document(self) -> Dict[str, Any]:
        return {
            "key": self.key.to_document(),
            "file_anchors": [anchor.to_document() for anchor in self.anchors],
        }

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "FingerprintDocument":
        return cls(
            key=FingerprintKey.from_document(data["key"]),
            anchors=[Anchor.from_document(a) for a in data.get("file_anchors", [])],
        )


class FingerprintStore(ABC):
    """Document store holding one document per fingerprint key.

    Implementations must serialize upserts to the same key (no lost appends)
    without making upserts to different keys wait on each other longer than
    necessary.
    """

    @abstractmethod
    def upsert(self, key: FingerprintKey, anchor: Anchor) -> None:
        """Create the document for ``key`` or append ``anchor`` to it.

        Raises:
            StoreError: the backing store failed.
            DuplicateKeyError: the store already holds several documents for key.
        """

    @abstractmethod
    def lookup(self, key: FingerprintKey) -> Optional[FingerprintDocument]:
        """Return the document for ``key`` or ``None``.

        Raises:
            DuplicateKeyError: more than one document exists for the key.
        """

    @abstractmethod
    def documents(self) -> Iterator[FingerprintDocument]:
        """Iterate over every stored document."""

    def count(self) -> int:
        return sum(1 for _ in self.documents())

    def close(self) -> None:
        """Release resources held by the store."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def single_document(key: FingerprintKey,
                    found: List[FingerprintDocument]) -> Optional[FingerprintDocument]:
    """Enforce the one-document-per-key invariant on a lookup result."""
    if not found:
        return None
    if len(found) > 1:
        raise DuplicateKeyError(
            f"{len(found)} documents found for key ({key.hash}, {key.value!r})",
            key_hash=key.hash,
            key_value=key.value,
            count=len(found),
        )
    return found[0]
