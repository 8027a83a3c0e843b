"""SQLite-backed fingerprint store."""

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ..core.errors import StoreError
from ..utils.logging_setup import get_logger
from .base import Anchor, FingerprintDocument, FingerprintKey, FingerprintStore, single_document

logger = get_logger(__name__)


class SQLiteStore(FingerprintStore):
    """Fingerprint documents in a SQLite database file.

    Every upsert runs in its own ``BEGIN IMMEDIATE`` transaction, which takes
    the database write lock before reading the key. Concurrent upserts from
    threads or processes therefore serialize and never lose an append.
    The ``(hash, value)`` index is not unique; ``upsert`` keeps one document
    per key and every read checks it.
    """

    def __init__(self, db_path: Union[str, Path], timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout, isolation_level=None)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_database(self) -> None:
        """Initialize the database schema."""
        try:
            if self.db_path.parent and not self.db_path.parent.exists():
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with closing(self._connect()) as conn:
                conn.executescript('''
                    CREATE TABLE IF NOT EXISTS fingerprints (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        hash INTEGER NOT NULL,
                        value TEXT NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    );

                    CREATE TABLE IF NOT EXISTS file_anchors (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        fingerprint_id INTEGER NOT NULL,
                        file_path TEXT NOT NULL,
                        start_line INTEGER NOT NULL,
                        start_column INTEGER NOT NULL,
                        end_line INTEGER NOT NULL,
                        end_column INTEGER NOT NULL,
                        FOREIGN KEY (fingerprint_id) REFERENCES fingerprints (id)
                    );

                    CREATE INDEX IF NOT EXISTS idx_fingerprints_key ON fingerprints (hash, value);
                    CREATE INDEX IF NOT EXISTS idx_file_anchors_fingerprint ON file_anchors (fingerprint_id);
                    CREATE INDEX IF NOT EXISTS idx_file_anchors_file_path ON file_anchors (file_path);
                ''')
        except sqlite3.Error as e:
            raise StoreError(f"Cannot initialize index at {self.db_path}: {e}", operation='init') from e

    @staticmethod
    def _fingerprint_ids(conn: sqlite3.Connection, key: FingerprintKey) -> List[int]:
        rows = conn.execute(
            'SELECT id FROM fingerprints WHERE hash = ? AND value = ? ORDER BY id',
            (key.hash, key.value)
        ).fetchall()
        return [row[0] for row in rows]

    @staticmethod
    def _anchors(conn: sqlite3.Connection, fingerprint_id: int) -> List[Anchor]:
        rows = conn.execute('''
            SELECT file_path, start_line, start_column, end_line, end_column
            FROM file_anchors
            WHERE fingerprint_id = ?
            ORDER BY id ASC
        ''', (fingerprint_id,)).fetchall()
        return [Anchor(*row) for row in rows]

    def upsert(self, key: FingerprintKey, anchor: Anchor) -> None:
        try:
            with closing(self._connect()) as conn:
                conn.execute('BEGIN IMMEDIATE')
                try:
                    ids = self._fingerprint_ids(conn, key)
                    # Raises DuplicateKeyError on a broken invariant
                    single_document(key, [FingerprintDocument(key) for _ in ids])
                    if ids:
                        fingerprint_id = ids[0]
                    else:
                        cursor = conn.execute(
                            'INSERT INTO fingerprints (hash, value) VALUES (?, ?)',
                            (key.hash, key.value)
                        )
                        fingerprint_id = cursor.lastrowid
                    conn.execute('''
                        INSERT INTO file_anchors
                        (fingerprint_id, file_path, start_line, start_column, end_line, end_column)
                        VALUES (?, ?, ?, ?, ?, ?)
                    ''', (
                        fingerprint_id,
                        anchor.file_path,
                        anchor.start_line,
                        anchor.start_column,
                        anchor.end_line,
                        anchor.end_column
                    ))
                    conn.execute('COMMIT')
                except BaseException:
                    if conn.in_transaction:
                        conn.execute('ROLLBACK')
                    raise
        except sqlite3.Error as e:
            logger.error(f"Upsert failed for key {key.hash}: {e}")
            raise StoreError(f"Upsert failed for key ({key.hash}, {key.value!r}): {e}",
                             operation='upsert') from e

    def lookup(self, key: FingerprintKey) -> Optional[FingerprintDocument]:
        try:
            with closing(self._connect()) as conn:
                ids = self._fingerprint_ids(conn, key)
                documents = [FingerprintDocument(key, self._anchors(conn, i)) for i in ids]
        except sqlite3.Error as e:
            raise StoreError(f"Lookup failed for key ({key.hash}, {key.value!r}): {e}",
                             operation='lookup') from e
        return single_document(key, documents)

    def documents(self) -> Iterator[FingerprintDocument]:
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute('SELECT id, hash, value FROM fingerprints ORDER BY id').fetchall()
                documents = [
                    FingerprintDocument(FingerprintKey(h, v), self._anchors(conn, i))
                    for i, h, v in rows
                ]
        except sqlite3.Error as e:
            raise StoreError(f"Cannot read documents: {e}", operation='documents') from e
        return iter(documents)

    def count(self) -> int:
        try:
            with closing(self._connect()) as conn:
                return conn.execute('SELECT COUNT(*) FROM fingerprints').fetchone()[0]
        except sqlite3.Error as e:
            raise StoreError(f"Cannot count documents: {e}", operation='count') from e
