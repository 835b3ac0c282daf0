"""
Abstract Storage Interface

DESIGN DECISION: The accounting engine never owns persistence.
It reads through this interface, which allows us to:
1. Plug in whatever document store the app syncs with
2. Use in-memory storage for testing
3. Load a data dump for offline reporting
4. Keep accounting logic decoupled from storage implementation

The interface is intentionally small - list a collection, fetch one
document, and tell listeners when anything changes.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import BaseModel

from cash_ledger.models.audit import AuditEvent


class DocumentChange(BaseModel):
    """Notification sent to listeners after any write."""
    action: str  # "upsert" or "remove"
    collection: Optional[str] = None
    doc_id: Optional[str] = None


ChangeListener = Callable[[DocumentChange], None]


class DocumentStoreInterface(ABC):
    """
    Abstract interface for the document store.

    Documents are plain dicts in the store's own (camelCase) shape.
    Callers parse them into models.
    """

    def __init__(self):
        self._listeners: list[ChangeListener] = []

    @abstractmethod
    async def list_by_collection(self, collection: str) -> list[dict[str, Any]]:
        """
        List every document of a collection.

        Args:
            collection: Collection name, e.g. 'record'

        Returns:
            The documents, in storage order
        """
        pass

    @abstractmethod
    async def get_doc_by_id(self, doc_id: str) -> Optional[dict[str, Any]]:
        """
        Retrieve a document by its ID.

        Args:
            doc_id: The document's `_id`

        Returns:
            The document if found, None otherwise
        """
        pass

    def add_change_listener(self, listener: ChangeListener) -> None:
        """Register a callable invoked after every upsert or removal."""
        self._listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, change: DocumentChange) -> None:
        for listener in list(self._listeners):
            listener(change)


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass
