"""Access audit trail."""

from .events import AccessEvent, CallerIdentity, EventOutcome, Operation
from .sinks import AuditSink, FileSink, LoggingSink
from .trail import AuditTrail

__all__ = [
    "AccessEvent",
    "CallerIdentity",
    "EventOutcome",
    "Operation",
    "AuditSink",
    "FileSink",
    "LoggingSink",
    "AuditTrail",
]
