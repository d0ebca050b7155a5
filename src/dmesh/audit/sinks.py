"""Audit sinks."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from .events import AccessEvent


class AuditSink(ABC):
    """
    Abstract base class for audit sinks.

    Sinks deliver access events to a destination (log, file, etc.).
    """

    @abstractmethod
    def send(self, event: AccessEvent) -> None:
        ...

    def close(self) -> None:
        """Release any resources held by the sink."""
        pass


@dataclass
class LoggingSink(AuditSink):
    """Writes each event as one JSON line on a logger."""
    logger_name: str = "dmesh.audit"
    level: int = logging.INFO

    def send(self, event: AccessEvent) -> None:
        logging.getLogger(self.logger_name).log(
            self.level, json.dumps(event.to_dict(), default=str)
        )


@dataclass
class FileSink(AuditSink):
    """
    Appends events to a file (JSONL format).

    The file is opened per event so nothing stays open between commands.
    """
    path: str
    encoding: str = "utf-8"

    def send(self, event: AccessEvent) -> None:
        path = Path(self.path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding=self.encoding) as f:
            f.write(json.dumps(event.to_dict(), default=str) + "\n")
