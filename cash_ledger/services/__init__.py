"""Services package."""

from cash_ledger.services.inference import RecordInferenceService
from cash_ledger.services.storage import (
    AuditStorageInterface,
    ChangeListener,
    DocumentChange,
    DocumentStoreInterface,
    InMemoryAuditStorage,
    InMemoryDocumentStore,
    JsonBackupDocumentStore,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Inference
    "RecordInferenceService",
    # Storage services
    "AuditStorageInterface",
    "ChangeListener",
    "DocumentChange",
    "DocumentStoreInterface",
    "InMemoryAuditStorage",
    "InMemoryDocumentStore",
    "JsonBackupDocumentStore",
    "NotFoundError",
    "StorageError",
]
