# Exception taxonomy for the bulk property import pipeline.
from __future__ import annotations

from typing import Optional


class PropertyImportError(Exception):
    """Base exception for import pipeline failures."""
    pass


class ParseError(PropertyImportError):
    """Raised when an uploaded file is not well-formed CSV. Aborts the whole import."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class StorageError(PropertyImportError):
    """Raised when a batch write fails for a reason other than a missing tenant."""
    pass


class TenantNotFoundError(StorageError):
    """A batch referenced a tenant that does not exist (foreign-key violation)."""

    def __init__(self, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        super().__init__(f"Tenant {tenant_id} does not exist")


class QueuePublishError(PropertyImportError):
    """Raised when an import job could not be handed to the queue."""
    pass


class QueueConfigError(PropertyImportError):
    """Raised when the import queue cannot be resolved at startup."""
    pass
