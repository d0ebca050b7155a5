"""Synchronous audit trail."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import AuditConfig
from .events import AccessEvent
from .sinks import AuditSink, FileSink, LoggingSink


logger = logging.getLogger(__name__)


@dataclass
class AuditTrail:
    """
    Delivers access events to every registered sink.

    A failing sink never fails the operation being audited; the error is
    logged and counted.
    """
    sinks: list[AuditSink] = field(default_factory=list)
    enabled: bool = True

    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "recorded": 0,
            "errors": 0,
        }

    @classmethod
    def from_config(cls, config: AuditConfig) -> AuditTrail:
        if config.sink == "file":
            sinks: list[AuditSink] = [FileSink(path=config.file_path)]
        elif config.sink == "log":
            sinks = [LoggingSink()]
        else:
            raise ValueError(f"Unknown audit sink: {config.sink}")
        return cls(sinks=sinks, enabled=config.enabled)

    def record(self, event: AccessEvent) -> None:
        if not self.enabled:
            return

        self._stats["recorded"] += 1
        for sink in self.sinks:
            try:
                sink.send(event)
            except Exception as e:
                logger.error(f"Audit sink {type(sink).__name__} failed: {e}")
                self._stats["errors"] += 1

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()

    @property
    def stats(self) -> dict:
        return {
            **self._stats,
            "sinks": len(self.sinks),
        }
