"""
Custom exception hierarchy for the face transfer.

Components raise these; the orchestrator decides which ones abort the
whole run (and roll back the catalog) and which ones only skip a photo.
"""


class FaceTransferError(Exception):
    """Base exception for all face transfer errors."""
    pass


class DatabaseError(FaceTransferError):
    """Raised when database operations fail."""
    pass


class StatementError(DatabaseError):
    """Raised when a single SQL statement is rejected."""

    def __init__(self, message: str, sql: str = ""):
        super().__init__(message)
        self.sql = sql


class BindError(StatementError):
    """Raised when parameters cannot be bound to a statement."""
    pass


class StepError(StatementError):
    """Raised when executing a prepared statement fails."""
    pass


class SchemaError(DatabaseError):
    """Raised when a database lacks a table or column we rely on."""
    pass


class AllocationError(FaceTransferError):
    """Raised when the catalog's id counter cannot be read or advanced."""
    pass


class NotFoundError(FaceTransferError):
    """Raised when an expected row does not exist."""
    pass


class AmbiguousMatchError(FaceTransferError):
    """Raised when more than one row matches where exactly one is required."""
    pass


class XmpPatchError(FaceTransferError):
    """Raised when an XMP document cannot be parsed or patched."""
    pass
