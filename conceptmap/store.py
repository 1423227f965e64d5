"""Edge and submission stores backing the Aggregator.

Two implementations share one interface:

    MemoryStore  - dicts guarded by a lock per (scope, edge key), with an
                   undo journal so a failed transaction leaves no trace.
    SqliteStore  - sessions / edges / session_edges tables; each transaction
                   is a single BEGIN IMMEDIATE ... COMMIT.

Callers wrap every mutation in ``store.atomic(scope, key)``.
"""

import logging
import sqlite3
import threading
import time
import weakref
from contextlib import contextmanager
from dataclasses import dataclass

from .canonical import split_edge_key
from .graph import Edge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    code: str
    name: str = None
    created_at: str = None

    def to_dict(self):
        return {"code": self.code, "name": self.name, "created_at": self.created_at}


def _now():
    return time.strftime("%Y-%m-%d %H:%M:%S")


class EdgeStore:
    """Interface for scope-partitioned edge and submission storage."""

    def atomic(self, scope, key):
        """Context manager making the enclosed mutations all-or-nothing."""
        raise NotImplementedError

    def get_edge(self, scope, key):
        raise NotImplementedError

    def increment(self, scope, key, labels=None):
        """Create the edge at weight 1 or add 1; returns the new weight."""
        raise NotImplementedError

    def has_submission(self, scope, session_id, key):
        raise NotImplementedError

    def record_submission(self, scope, session_id, key):
        raise NotImplementedError

    def list_edges(self, scope):
        raise NotImplementedError

    def labels(self, scope):
        """Map of concept id -> display label for a scope."""
        raise NotImplementedError

    def edge_count(self):
        """Total number of edges across every scope."""
        raise NotImplementedError

    def create_session(self, code, name=None):
        raise NotImplementedError

    def get_session(self, code):
        raise NotImplementedError

    def close(self):
        pass


class MemoryStore(EdgeStore):
    """In-process store. Different edge keys never share a lock."""

    def __init__(self):
        self._edges = {}        # scope -> {key: Edge}
        self._labels = {}       # scope -> {concept: label}
        self._submissions = {}  # scope -> {(session_id, key)}
        self._sessions = {}
        self._guard = threading.Lock()
        # entries vanish once no thread holds or waits on the key
        self._key_locks = weakref.WeakValueDictionary()
        self._local = threading.local()

    def _lock_for(self, scope, key):
        with self._guard:
            lock = self._key_locks.get((scope, key))
            if lock is None:
                lock = self._key_locks[(scope, key)] = threading.Lock()
            return lock

    def _journal(self, undo):
        journal = getattr(self._local, "journal", None)
        if journal is not None:
            journal.append(undo)

    @contextmanager
    def atomic(self, scope, key):
        with self._lock_for(scope, key):
            self._local.journal = []
            try:
                yield self
            except BaseException:
                for undo in reversed(self._local.journal):
                    undo()
                raise
            finally:
                self._local.journal = None

    def get_edge(self, scope, key):
        return self._edges.get(scope, {}).get(key)

    def increment(self, scope, key, labels=None):
        source, target = split_edge_key(key)
        with self._guard:
            edges = self._edges.setdefault(scope, {})
            previous = edges.get(key)
            weight = 1 if previous is None else previous.weight + 1
            edges[key] = Edge(key=key, source=source, target=target, weight=weight)

            scope_labels = self._labels.setdefault(scope, {})
            added = [c for c in (labels or {}) if c not in scope_labels]
            for concept in added:
                scope_labels[concept] = labels[concept]

        def undo():
            with self._guard:
                if previous is None:
                    edges.pop(key, None)
                else:
                    edges[key] = previous
                for concept in added:
                    scope_labels.pop(concept, None)

        self._journal(undo)
        return weight

    def has_submission(self, scope, session_id, key):
        return (session_id, key) in self._submissions.get(scope, set())

    def record_submission(self, scope, session_id, key):
        with self._guard:
            records = self._submissions.setdefault(scope, set())
            records.add((session_id, key))

        def undo():
            with self._guard:
                records.discard((session_id, key))

        self._journal(undo)

    def list_edges(self, scope):
        with self._guard:
            edges = list(self._edges.get(scope, {}).values())
        return sorted(edges, key=lambda e: (-e.weight, e.key))

    def labels(self, scope):
        with self._guard:
            return dict(self._labels.get(scope, {}))

    def edge_count(self):
        with self._guard:
            return sum(len(edges) for edges in self._edges.values())

    def create_session(self, code, name=None):
        with self._guard:
            if code not in self._sessions:
                self._sessions[code] = Session(code=code, name=name, created_at=_now())
            return self._sessions[code]

    def get_session(self, code):
        return self._sessions.get(code)


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS sessions (
    code       TEXT PRIMARY KEY,
    name       TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS edges (
    session_code TEXT NOT NULL,
    edge_key     TEXT NOT NULL,
    concept_a    TEXT NOT NULL,
    concept_b    TEXT NOT NULL,
    weight       INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (session_code, edge_key)
);

CREATE TABLE IF NOT EXISTS concept_labels (
    session_code TEXT NOT NULL,
    concept      TEXT NOT NULL,
    label        TEXT NOT NULL,
    PRIMARY KEY (session_code, concept)
);

CREATE TABLE IF NOT EXISTS session_edges (
    session_id   TEXT NOT NULL,
    session_code TEXT NOT NULL,
    edge_key     TEXT NOT NULL,
    PRIMARY KEY (session_id, session_code, edge_key)
);
"""


class SqliteStore(EdgeStore):
    """SQLite-backed store; pass ":memory:" for a throwaway database."""

    def __init__(self, db_path):
        self._db_path = str(db_path)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(
            self._db_path, check_same_thread=False, isolation_level=None,
        )
        self._conn.row_factory = sqlite3.Row
        if self._db_path != ":memory:":
            self._conn.execute("PRAGMA journal_mode = WAL")
        self._conn.executescript(_SCHEMA_SQL)
        logger.debug("SqliteStore initialized: %s", self._db_path)

    def close(self):
        with self._lock:
            self._conn.close()

    @contextmanager
    def atomic(self, scope, key):
        # One connection, so writers serialize here and in SQLite itself
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield self
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            else:
                self._conn.execute("COMMIT")

    def get_edge(self, scope, key):
        with self._lock:
            row = self._conn.execute(
                "SELECT edge_key, concept_a, concept_b, weight FROM edges "
                "WHERE session_code = ? AND edge_key = ?",
                (scope, key),
            ).fetchone()
        return _row_to_edge(row) if row else None

    def increment(self, scope, key, labels=None):
        source, target = split_edge_key(key)
        with self._lock:
            row = self._conn.execute(
                """INSERT INTO edges (session_code, edge_key, concept_a, concept_b, weight)
                   VALUES (?, ?, ?, ?, 1)
                   ON CONFLICT(session_code, edge_key) DO UPDATE SET weight = weight + 1
                   RETURNING weight""",
                (scope, key, source, target),
            ).fetchall()[0]
            for concept, label in (labels or {}).items():
                self._conn.execute(
                    "INSERT OR IGNORE INTO concept_labels (session_code, concept, label) "
                    "VALUES (?, ?, ?)",
                    (scope, concept, label),
                )
        return row["weight"]

    def has_submission(self, scope, session_id, key):
        with self._lock:
            row = self._conn.execute(
                "SELECT 1 FROM session_edges "
                "WHERE session_id = ? AND session_code = ? AND edge_key = ? LIMIT 1",
                (session_id, scope, key),
            ).fetchone()
        return row is not None

    def record_submission(self, scope, session_id, key):
        with self._lock:
            self._conn.execute(
                "INSERT INTO session_edges (session_id, session_code, edge_key) "
                "VALUES (?, ?, ?)",
                (session_id, scope, key),
            )

    def list_edges(self, scope):
        with self._lock:
            rows = self._conn.execute(
                "SELECT edge_key, concept_a, concept_b, weight FROM edges "
                "WHERE session_code = ? ORDER BY weight DESC, edge_key ASC",
                (scope,),
            ).fetchall()
        return [_row_to_edge(r) for r in rows]

    def labels(self, scope):
        with self._lock:
            rows = self._conn.execute(
                "SELECT concept, label FROM concept_labels WHERE session_code = ?",
                (scope,),
            ).fetchall()
        return {r["concept"]: r["label"] for r in rows}

    def edge_count(self):
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM edges").fetchone()[0]

    def create_session(self, code, name=None):
        with self._lock:
            self._conn.execute(
                "INSERT OR IGNORE INTO sessions (code, name, created_at) VALUES (?, ?, ?)",
                (code, name, _now()),
            )
        return self.get_session(code)

    def get_session(self, code):
        with self._lock:
            row = self._conn.execute(
                "SELECT code, name, created_at FROM sessions WHERE code = ?", (code,)
            ).fetchone()
        if row is None:
            return None
        return Session(code=row["code"], name=row["name"], created_at=row["created_at"])


def _row_to_edge(row):
    return Edge(
        key=row["edge_key"],
        source=row["concept_a"],
        target=row["concept_b"],
        weight=row["weight"],
    )
