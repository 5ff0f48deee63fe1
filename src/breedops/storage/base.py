"""Summary: Storage interface for the notification log.

Importance: Keeps dispatch logic independent of the database behind it.
Alternatives: Depend on the SQLite store class directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from breedops.models import NotificationLogRecord


class NotificationStore(ABC):
    """Summary: Abstract keyed store of notification attempts.

    Importance: Allows SQLite locally and a server database in production.
    Alternatives: Keep records in a process-local dictionary.
    """

    @abstractmethod
    def put(self, record: NotificationLogRecord) -> None:
        """Insert a new record."""

    @abstractmethod
    def get(self, record_id: str) -> NotificationLogRecord | None:
        """Fetch a record by id."""

    @abstractmethod
    def update(self, record_id: str, **changes: Any) -> NotificationLogRecord:
        """Apply changes to a record and return the stored result."""

    @abstractmethod
    def list(
        self,
        notification_type: str | None = None,
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[NotificationLogRecord]:
        """List records newest first."""

    @abstractmethod
    def find_by_message_id(self, message_id: str) -> NotificationLogRecord | None:
        """Find the record for a provider message id."""

    @abstractmethod
    def count_by_status(self) -> dict[str, int]:
        """Count records per status."""

    @abstractmethod
    def list_retry_candidates(self, max_retries: int) -> list[NotificationLogRecord]:
        """List retryable failed records whose retry counter is below the limit.

        Configuration failures are excluded until an operator fixes the setup.
        """

    @abstractmethod
    def delete_created_before(self, cutoff: datetime) -> int:
        """Delete records created before the cutoff and return the count."""
