"""Query federation over data products."""

from .bridge import QueryFederationBridge
from .errors import EngineInitError, ExecutionError, QueryError, RegistrationError, RowScanError
from .sql import detect_storage_format, quote_identifier, quote_literal
from .types import QueryResult, QuerySession

__all__ = [
    "QueryFederationBridge",
    "EngineInitError",
    "ExecutionError",
    "QueryError",
    "RegistrationError",
    "RowScanError",
    "detect_storage_format",
    "quote_identifier",
    "quote_literal",
    "QueryResult",
    "QuerySession",
]
