"""Exceptions raised by vaultbridge.

Every error surfaced to callers derives from VaultBridgeError. Caller input
problems are detected locally before any store call; everything the stores
report is wrapped in TransportError (or IntegrityFailureError when the
archival store rejects a checksum) with the original exception chained.
"""
from typing import Optional


class VaultBridgeError(RuntimeError):
    """Base class for all vaultbridge errors."""
    pass


class InvalidArgumentError(VaultBridgeError, ValueError):
    """Malformed caller input (empty name, empty buffer, missing file name)."""
    pass


class ConfigError(VaultBridgeError):
    """Store cannot be built from the current configuration."""
    pass


class IntegrityFailureError(VaultBridgeError):
    """Archival store rejected the upload checksum."""

    def __init__(self, message: str, expected: Optional[str] = None, actual: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class TransportError(VaultBridgeError):
    """Network or service error reported by a store."""

    def __init__(self, operation: str, message: str, code: Optional[str] = None):
        self.operation = operation
        self.code = code
        super().__init__(f"Failed to {operation}: {message}")


class ObjectNotFoundError(TransportError):
    """Key, archive or job does not exist in the store."""
    pass


class InvalidStateTransitionError(VaultBridgeError):
    """Archival workflow step invoked out of order, or on an unknown job."""

    def __init__(self, message: str, current=None):
        self.current = current
        super().__init__(message)


class RetrievalCancelledError(VaultBridgeError):
    """Polling for a retrieval job was cancelled by the caller."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Polling for job {job_id} was cancelled")


class RetrievalTimeoutError(VaultBridgeError):
    """Retrieval job did not reach a terminal status before the deadline."""

    def __init__(self, job_id: str, timeout: float, last_status=None):
        self.job_id = job_id
        self.timeout = timeout
        self.last_status = last_status
        super().__init__(f"Job {job_id} not finished after {timeout:g}s (last status: {last_status})")
