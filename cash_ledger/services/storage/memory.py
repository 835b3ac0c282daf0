"""
In-Memory Storage

Keeps documents in a dict keyed by `_id`. Used by tests and as the
default store when no data dump is configured.
"""

import copy
from typing import Any, Optional
from uuid import uuid4

from cash_ledger.models.audit import AuditEvent
from cash_ledger.services.storage.interface import (
    AuditStorageInterface,
    DocumentChange,
    DocumentStoreInterface,
    NotFoundError,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """
    Dict-backed document store.

    Documents are deep-copied on the way in and out so callers can
    never mutate what the store holds.
    """

    def __init__(self, docs: Optional[list[dict[str, Any]]] = None):
        super().__init__()
        self._docs: dict[str, dict[str, Any]] = {}
        for doc in docs or []:
            self._put(doc)

    def _put(self, doc: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(doc)
        if not stored.get("_id"):
            stored["_id"] = f"{stored.get('$collection', 'doc')}-{uuid4().hex}"
        self._docs[stored["_id"]] = stored
        return stored

    async def list_by_collection(self, collection: str) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(doc)
            for doc in self._docs.values()
            if doc.get("$collection") == collection
        ]

    async def get_doc_by_id(self, doc_id: str) -> Optional[dict[str, Any]]:
        doc = self._docs.get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def upsert_doc(self, doc: dict[str, Any]) -> str:
        """Insert or replace a document. Returns its `_id`."""
        stored = self._put(doc)
        self._notify(DocumentChange(
            action="upsert",
            collection=stored.get("$collection"),
            doc_id=stored["_id"],
        ))
        return stored["_id"]

    async def remove_doc(self, doc_id: str) -> None:
        doc = self._docs.pop(doc_id, None)
        if doc is None:
            raise NotFoundError(f"Document not found: {doc_id}")
        self._notify(DocumentChange(
            action="remove",
            collection=doc.get("$collection"),
            doc_id=doc_id,
        ))


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
