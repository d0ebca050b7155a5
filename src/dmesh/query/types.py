"""Query result and session types."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import duckdb


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QueryResult:
    """
    Fully materialized query result.

    Every row has exactly one value per column, in column order.
    """
    columns: tuple[str, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = ()

    def __post_init__(self):
        width = len(self.columns)
        for i, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {i} has {len(row)} values, expected {width}"
                )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_records(self) -> list[dict[str, Any]]:
        """Rows as column -> value dicts."""
        return [dict(zip(self.columns, row)) for row in self.rows]


@dataclass
class QuerySession:
    """
    One engine connection plus the data products registered in it.

    Single use and not thread-safe. Close it (or use it as a context
    manager) when the request is done.
    """
    connection: Any

    # Registered relation name -> physical location
    relations: dict[str, str] = field(default_factory=dict)

    _closed: bool = field(default=False, init=False)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            self.connection.close()
        except duckdb.Error as e:
            logger.warning(f"Error closing engine connection: {e}")

    def __enter__(self) -> QuerySession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
