"""
Storage Services Package

Provides the abstract document-store interface the accounting engine
reads through, plus in-memory and JSON data dump implementations.
"""

from cash_ledger.services.storage.interface import (
    AuditStorageInterface,
    ChangeListener,
    DocumentChange,
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
)
from cash_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryDocumentStore,
)
from cash_ledger.services.storage.json_backup import JsonBackupDocumentStore

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ChangeListener",
    "DocumentChange",
    "DocumentStoreInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryDocumentStore",
    "JsonBackupDocumentStore",
]
