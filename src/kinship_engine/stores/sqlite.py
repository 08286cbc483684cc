"""SQLite adapters for the ancestor cache, matching preferences and connection requests."""
from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from ..exceptions import (
    ConnectionRequestConflict,
    ConnectionRequestNotFound,
    InvalidTransition,
    StoreUnavailable,
)
from ..models.ancestry import AncestorRecord
from ..models.connection import ACTIVE_STATUSES, ConnectionRequest, ConnectionStatus
from ..models.person import MatchingPreference
from .base import AncestorCacheStore, ConnectionRequestStore, PreferenceStore

_ACTIVE = tuple(s.value for s in ACTIVE_STATUSES)

SCHEMA = """
CREATE TABLE IF NOT EXISTS ancestor_cache (
    user_id TEXT NOT NULL,
    ancestor_id TEXT NOT NULL,
    depth INTEGER NOT NULL CHECK (depth >= 1),
    path TEXT NOT NULL,
    computed_at TEXT NOT NULL,
    PRIMARY KEY (user_id, ancestor_id)
);
CREATE INDEX IF NOT EXISTS idx_ancestor_cache_ancestor ON ancestor_cache(ancestor_id, depth);

CREATE TABLE IF NOT EXISTS matching_preferences (
    user_id TEXT PRIMARY KEY,
    allow_matching INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS connection_requests (
    id TEXT PRIMARY KEY,
    from_id TEXT NOT NULL,
    to_id TEXT NOT NULL,
    shared_ancestor_id TEXT,
    status TEXT NOT NULL,
    message TEXT,
    relationship_description TEXT,
    created_at TEXT NOT NULL,
    responded_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_requests_from ON connection_requests(from_id, status);
CREATE INDEX IF NOT EXISTS idx_requests_to ON connection_requests(to_id, status);
"""


class SQLiteDatabase:
    """Shared connection handling and schema for the SQLite adapters.

    Connections are opened per call, so adapters can be used from worker
    threads.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.connect() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path, isolation_level=None)
        except sqlite3.Error as e:
            raise StoreUnavailable("sqlite", str(e)) from e
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            yield conn
        except sqlite3.OperationalError as e:
            raise StoreUnavailable("sqlite", str(e)) from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction taken with BEGIN IMMEDIATE; rolled back on error."""
        with self.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")


def _record_from_row(row: sqlite3.Row) -> AncestorRecord:
    return AncestorRecord(
        descendant_id=row["user_id"],
        ancestor_id=row["ancestor_id"],
        depth=row["depth"],
        path=tuple(json.loads(row["path"])),
        computed_at=datetime.fromisoformat(row["computed_at"]),
    )


class SQLiteAncestorCacheStore(AncestorCacheStore):
    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def replace(self, user_id: str, records: Sequence[AncestorRecord]) -> int:
        with self.db.transaction() as conn:
            conn.execute("DELETE FROM ancestor_cache WHERE user_id = ?", (user_id,))
            conn.executemany(
                """
                INSERT INTO ancestor_cache (user_id, ancestor_id, depth, path, computed_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, ancestor_id) DO UPDATE SET
                    depth = excluded.depth,
                    path = excluded.path,
                    computed_at = excluded.computed_at
                """,
                [
                    (
                        user_id,
                        r.ancestor_id,
                        r.depth,
                        json.dumps(list(r.path)),
                        r.computed_at.isoformat(),
                    )
                    for r in records
                ],
            )
        return len({r.ancestor_id for r in records})

    def get(self, user_id: str, max_depth: int | None = None) -> list[AncestorRecord]:
        sql = "SELECT * FROM ancestor_cache WHERE user_id = ?"
        params: list = [user_id]
        if max_depth is not None:
            sql += " AND depth <= ?"
            params.append(max_depth)
        sql += " ORDER BY depth, ancestor_id"
        with self.db.connect() as conn:
            return [_record_from_row(row) for row in conn.execute(sql, params).fetchall()]

    def find_sharing(
        self,
        ancestor_ids: Iterable[str],
        exclude_user_id: str,
        max_depth: int,
    ) -> list[AncestorRecord]:
        ids = list(dict.fromkeys(ancestor_ids))
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        with self.db.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM ancestor_cache
                WHERE ancestor_id IN ({placeholders})
                  AND user_id != ?
                  AND depth <= ?
                ORDER BY user_id, depth
                """,
                (*ids, exclude_user_id, max_depth),
            ).fetchall()
        return [_record_from_row(row) for row in rows]

    def clear(self, user_id: str) -> None:
        with self.db.transaction() as conn:
            conn.execute("DELETE FROM ancestor_cache WHERE user_id = ?", (user_id,))


class SQLitePreferenceStore(PreferenceStore):
    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def get(self, user_id: str) -> MatchingPreference | None:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM matching_preferences WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return MatchingPreference(
            user_id=row["user_id"],
            allow_matching=bool(row["allow_matching"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def upsert(self, preference: MatchingPreference) -> MatchingPreference:
        with self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO matching_preferences (user_id, allow_matching, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    allow_matching = excluded.allow_matching,
                    updated_at = excluded.updated_at
                """,
                (preference.user_id, int(preference.allow_matching), preference.updated_at.isoformat()),
            )
        return preference

    def opted_in(self, user_ids: Iterable[str]) -> set[str]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return set()
        placeholders = ",".join("?" for _ in ids)
        with self.db.connect() as conn:
            rows = conn.execute(
                f"SELECT user_id FROM matching_preferences WHERE allow_matching = 1 AND user_id IN ({placeholders})",
                ids,
            ).fetchall()
        return {row["user_id"] for row in rows}


def _request_from_row(row: sqlite3.Row) -> ConnectionRequest:
    return ConnectionRequest(
        id=row["id"],
        from_id=row["from_id"],
        to_id=row["to_id"],
        shared_ancestor_id=row["shared_ancestor_id"],
        status=ConnectionStatus(row["status"]),
        message=row["message"],
        relationship_description=row["relationship_description"],
        created_at=datetime.fromisoformat(row["created_at"]),
        responded_at=datetime.fromisoformat(row["responded_at"]) if row["responded_at"] else None,
    )


class SQLiteConnectionRequestStore(ConnectionRequestStore):
    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def insert(self, request: ConnectionRequest) -> ConnectionRequest:
        with self.db.transaction() as conn:
            existing = conn.execute(
                f"""
                SELECT id FROM connection_requests
                WHERE ((from_id = ? AND to_id = ?) OR (from_id = ? AND to_id = ?))
                  AND status IN ({",".join("?" for _ in _ACTIVE)})
                LIMIT 1
                """,
                (request.from_id, request.to_id, request.to_id, request.from_id, *_ACTIVE),
            ).fetchone()
            if existing is not None:
                raise ConnectionRequestConflict(request.from_id, request.to_id, existing["id"])
            conn.execute(
                """
                INSERT INTO connection_requests (
                    id, from_id, to_id, shared_ancestor_id, status,
                    message, relationship_description, created_at, responded_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    request.id,
                    request.from_id,
                    request.to_id,
                    request.shared_ancestor_id,
                    request.status.value,
                    request.message,
                    request.relationship_description,
                    request.created_at.isoformat(),
                    request.responded_at.isoformat() if request.responded_at else None,
                ),
            )
        return request

    def get(self, request_id: str) -> ConnectionRequest | None:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM connection_requests WHERE id = ?",
                (request_id,),
            ).fetchone()
        return _request_from_row(row) if row else None

    def update(
        self,
        request: ConnectionRequest,
        expected: ConnectionStatus | None = None,
    ) -> ConnectionRequest:
        sql = """
            UPDATE connection_requests
            SET status = ?, responded_at = ?, message = ?, relationship_description = ?
            WHERE id = ?
        """
        params: list = [
            request.status.value,
            request.responded_at.isoformat() if request.responded_at else None,
            request.message,
            request.relationship_description,
            request.id,
        ]
        if expected is not None:
            sql += " AND status = ?"
            params.append(expected.value)
        with self.db.transaction() as conn:
            cursor = conn.execute(sql, params)
            if cursor.rowcount == 0:
                row = conn.execute(
                    "SELECT status FROM connection_requests WHERE id = ?",
                    (request.id,),
                ).fetchone()
                if row is None:
                    raise ConnectionRequestNotFound(request.id)
                raise InvalidTransition(
                    request.id, row["status"], request.status.value, "request is no longer pending"
                )
        return request

    def list_for_user(
        self,
        user_id: str,
        status: ConnectionStatus | None = None,
        direction: str = "all",
    ) -> list[ConnectionRequest]:
        if direction == "sent":
            sql, params = "SELECT * FROM connection_requests WHERE from_id = ?", [user_id]
        elif direction == "received":
            sql, params = "SELECT * FROM connection_requests WHERE to_id = ?", [user_id]
        else:
            sql, params = "SELECT * FROM connection_requests WHERE (from_id = ? OR to_id = ?)", [user_id, user_id]
        if status is not None:
            sql += " AND status = ?"
            params.append(status.value)
        # UUID7 ids are time-ordered, so they break created_at ties
        sql += " ORDER BY created_at DESC, id DESC"
        with self.db.connect() as conn:
            return [_request_from_row(row) for row in conn.execute(sql, params).fetchall()]

    def has_active_between(self, a: str, b: str) -> bool:
        with self.db.connect() as conn:
            row = conn.execute(
                f"""
                SELECT 1 FROM connection_requests
                WHERE ((from_id = ? AND to_id = ?) OR (from_id = ? AND to_id = ?))
                  AND status IN ({",".join("?" for _ in _ACTIVE)})
                LIMIT 1
                """,
                (a, b, b, a, *_ACTIVE),
            ).fetchone()
        return row is not None

    def active_counterparts(self, user_id: str) -> set[str]:
        with self.db.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT from_id, to_id FROM connection_requests
                WHERE (from_id = ? OR to_id = ?)
                  AND status IN ({",".join("?" for _ in _ACTIVE)})
                """,
                (user_id, user_id, *_ACTIVE),
            ).fetchall()
        return {row["to_id"] if row["from_id"] == user_id else row["from_id"] for row in rows}
