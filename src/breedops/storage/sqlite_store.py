"""Summary: SQLite storage implementation for the notification log.

Importance: Provides a durable, local-first audit trail that survives restarts.
Alternatives: Use an ORM or an external database immediately.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from breedops.models import FAILURE_KINDS, NOTIFICATION_STATUSES, NotificationLogRecord
from breedops.storage.base import NotificationStore


_COLUMNS = (
    "id, type, data, recipient, status, message_id, error, failure_kind, "
    "retry_count, created_at, updated_at"
)

_UPDATABLE = {"status", "message_id", "error", "failure_kind", "retry_count", "data", "updated_at"}


class SqliteStore(NotificationStore):
    """Summary: SQLite-backed notification log.

    Importance: Enables persistence with no extra services to run.
    Alternatives: Use Postgres and SQLAlchemy from day one.
    """

    def __init__(self, db_path: str) -> None:
        """Summary: Initialize the storage with a database path.

        Importance: Allows configurable database location per environment.
        Alternatives: Hardcode a default path in the class.
        """

        self._db_path = Path(db_path)

    def initialize(self) -> None:
        """Summary: Create tables if they do not exist.

        Importance: Ensures the database is ready before the first notification.
        Alternatives: Run migrations using a dedicated migration tool.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS notifications (
                    id TEXT PRIMARY KEY,
                    type TEXT NOT NULL,
                    data TEXT NOT NULL,
                    recipient TEXT NOT NULL,
                    status TEXT NOT NULL,
                    message_id TEXT,
                    error TEXT,
                    failure_kind TEXT,
                    retry_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_notifications_message_id "
                "ON notifications (message_id)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_notifications_created_at "
                "ON notifications (created_at)"
            )
            connection.commit()

    def put(self, record: NotificationLogRecord) -> None:
        """Summary: Persist a new notification record.

        Importance: The pending record must exist before any delivery attempt.
        Alternatives: Insert only after the provider responds.
        """

        with self._connection() as connection:
            connection.execute(
                f"INSERT INTO notifications ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.type,
                    json.dumps(record.data),
                    record.recipient,
                    record.status,
                    record.message_id,
                    record.error,
                    record.failure_kind,
                    record.retry_count,
                    _to_text(record.created_at),
                    _to_text(record.updated_at),
                ),
            )
            connection.commit()

    def get(self, record_id: str) -> NotificationLogRecord | None:
        with self._connection() as connection:
            row = connection.execute(
                f"SELECT {_COLUMNS} FROM notifications WHERE id = ?", (record_id,)
            ).fetchone()
        return _row_to_record(row) if row else None

    def update(self, record_id: str, **changes: Any) -> NotificationLogRecord:
        """Summary: Update fields of an existing record in place.

        Importance: Moves records through pending, sent, failed, delivered, and read.
        Alternatives: Append a new row per status change.
        """

        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update notification fields: {sorted(unknown)}")
        if "status" in changes and changes["status"] not in NOTIFICATION_STATUSES:
            raise ValueError(f"Unknown notification status: {changes['status']}")
        if changes.get("failure_kind") not in (None, *FAILURE_KINDS):
            raise ValueError(f"Unknown failure kind: {changes['failure_kind']}")
        changes.setdefault("updated_at", datetime.now(timezone.utc))
        values: list[Any] = []
        for key, value in changes.items():
            if key == "data":
                value = json.dumps(value)
            elif key == "updated_at":
                value = _to_text(value)
            values.append(value)
        assignments = ", ".join(f"{key} = ?" for key in changes)
        with self._connection() as connection:
            cursor = connection.execute(
                f"UPDATE notifications SET {assignments} WHERE id = ?", (*values, record_id)
            )
            connection.commit()
            if cursor.rowcount == 0:
                raise KeyError(f"Notification with id {record_id} not found")
        record = self.get(record_id)
        if record is None:
            raise KeyError(f"Notification with id {record_id} not found")
        return record

    def list(
        self,
        notification_type: str | None = None,
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[NotificationLogRecord]:
        """Summary: List notification records newest first.

        Importance: Backs the admin notification view and CLI listing.
        Alternatives: Return all records and filter in Python.
        """

        clauses: list[str] = []
        params: list[Any] = []
        if notification_type:
            clauses.append("type = ?")
            params.append(notification_type)
        if status:
            clauses.append("status = ?")
            params.append(status)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connection() as connection:
            rows = connection.execute(
                f"""
                SELECT {_COLUMNS} FROM notifications {where}
                ORDER BY created_at DESC, rowid DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def find_by_message_id(self, message_id: str) -> NotificationLogRecord | None:
        """Summary: Find a record by its provider message id.

        Importance: Correlates webhook status updates with sent notifications.
        Alternatives: Store a separate provider-id mapping table.
        """

        with self._connection() as connection:
            row = connection.execute(
                f"SELECT {_COLUMNS} FROM notifications WHERE message_id = ? "
                "ORDER BY created_at DESC LIMIT 1",
                (message_id,),
            ).fetchone()
        return _row_to_record(row) if row else None

    def count_by_status(self) -> dict[str, int]:
        with self._connection() as connection:
            rows = connection.execute(
                "SELECT status, COUNT(*) FROM notifications GROUP BY status"
            ).fetchall()
        counts = {status: 0 for status in NOTIFICATION_STATUSES}
        for status, count in rows:
            counts[status] = int(count)
        return counts

    def list_retry_candidates(self, max_retries: int) -> list[NotificationLogRecord]:
        """Summary: List failed records still eligible for another attempt.

        Importance: Feeds the externally triggered retry sweep.
        Alternatives: Retry every failed record regardless of history.
        """

        with self._connection() as connection:
            rows = connection.execute(
                f"""
                SELECT {_COLUMNS} FROM notifications
                WHERE status = 'failed' AND retry_count < ?
                AND COALESCE(failure_kind, '') != 'configuration'
                ORDER BY created_at ASC
                """,
                (max_retries,),
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def delete_created_before(self, cutoff: datetime) -> int:
        """Summary: Delete records created before a cutoff.

        Importance: Bounds the log's growth with age-based pruning.
        Alternatives: Archive old rows to cold storage.
        """

        with self._connection() as connection:
            cursor = connection.execute(
                "DELETE FROM notifications WHERE created_at < ?", (_to_text(cutoff),)
            )
            connection.commit()
            return int(cursor.rowcount)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Summary: Context manager for SQLite connections.

        Importance: Ensures connections are closed cleanly after use.
        Alternatives: Keep a single long-lived connection.
        """

        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
        finally:
            connection.close()


def _to_text(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _row_to_record(row: tuple[Any, ...]) -> NotificationLogRecord:
    (
        record_id,
        notification_type,
        data,
        recipient,
        status,
        message_id,
        error,
        failure_kind,
        retry_count,
        created_at,
        updated_at,
    ) = row
    return NotificationLogRecord(
        id=record_id,
        type=notification_type,
        data=json.loads(data),
        recipient=recipient,
        status=status,
        message_id=message_id,
        error=error,
        failure_kind=failure_kind,
        retry_count=int(retry_count or 0),
        created_at=datetime.fromisoformat(created_at),
        updated_at=datetime.fromisoformat(updated_at),
    )
