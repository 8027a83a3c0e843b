"""In-process fingerprint store."""

import threading
from typing import Dict, Iterator, List, Optional

from ..utils.logging_setup import get_logger
from .base import Anchor, FingerprintDocument, FingerprintKey, FingerprintStore, single_document

logger = get_logger(__name__)


class MemoryStore(FingerprintStore):
    """Thread-safe dictionary-backed store.

    Each key gets its own lock; the registry lock is only held long enough to
    fetch or create that lock, so writers of different keys run concurrently.
    """

    def __init__(self) -> None:
        self._documents: Dict[FingerprintKey, List[FingerprintDocument]] = {}
        self._locks: Dict[FingerprintKey, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: FingerprintKey) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def _existing_lock(self, key: FingerprintKey) -> Optional[threading.Lock]:
        with self._registry_lock:
            return self._locks.get(key)

    def upsert(self, key: FingerprintKey, anchor: Anchor) -> None:
        with self._lock_for(key):
            document = single_document(key, self._documents.get(key, []))
            if document is None:
                self._documents[key] = [FingerprintDocument(key, [anchor])]
                logger.debug(f"created document for key {key.hash}")
            else:
                document.anchors.append(anchor)

    def lookup(self, key: FingerprintKey) -> Optional[FingerprintDocument]:
        # Upsert registers the lock before storing, so no lock means no document
        lock = self._existing_lock(key)
        if lock is None:
            return None
        with lock:
            document = single_document(key, self._documents.get(key, []))
            if document is None:
                return None
            # Callers get a snapshot, not the live anchor list
            return FingerprintDocument(document.key, list(document.anchors))

    def documents(self) -> Iterator[FingerprintDocument]:
        for key in list(self._documents):
            with self._lock_for(key):
                snapshot = [FingerprintDocument(d.key, list(d.anchors)) for d in self._documents.get(key, [])]
            yield from snapshot

    def count(self) -> int:
        return sum(len(docs) for docs in list(self._documents.values()))
