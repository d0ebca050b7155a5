"""Query error hierarchy."""

from __future__ import annotations


class QueryError(Exception):
    """Base exception for query federation errors."""
    pass


class EngineInitError(QueryError):
    """Raised when an engine session cannot be opened or configured."""
    pass


class RegistrationError(QueryError):
    """Raised when a data product cannot be registered in a session."""
    pass


class ExecutionError(QueryError):
    """
    Raised when the engine rejects or fails a query.

    The message is the engine's own error text, unaltered.
    """

    def __init__(self, message: str, sql: str | None = None):
        super().__init__(message)
        self.sql = sql


class RowScanError(QueryError):
    """Raised when results cannot be fully read after a query started."""
    pass
