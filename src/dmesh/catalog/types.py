"""Catalog types - data product descriptors and schemas."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# Layout used for descriptor timestamps shown to operators
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class StorageFormat(str, Enum):
    """Physical storage formats of data products."""
    ICEBERG = "iceberg"
    DELTA = "delta"
    PARQUET = "parquet"  # Plain batch of files

    @classmethod
    def parse(cls, value: str) -> StorageFormat | None:
        """Case-insensitive lookup. None if unrecognized."""
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError):
            return None


@dataclass(frozen=True, slots=True)
class QualifiedName:
    """A data product name split into its domain and product segments."""
    domain: str
    product: str

    def __str__(self) -> str:
        return f"{self.domain}.{self.product}"


@dataclass(frozen=True, slots=True)
class DataProductDescriptor:
    """
    Resolved metadata for one data product.

    Built fresh from the catalog on every resolution.
    """
    qualified_name: str
    domain: str
    product: str
    location: str
    storage_format: StorageFormat
    description: str = ""
    product_type: str = ""
    owner: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tags: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Caller-facing field set."""
        return {
            "name": self.qualified_name,
            "domain": self.domain,
            "description": self.description,
            "type": self.product_type,
            "format": self.storage_format.value,
            "location": self.location,
            "owner": self.owner,
            "created_at": _format_time(self.created_at),
            "updated_at": _format_time(self.updated_at),
            "tags": dict(self.tags),
        }


def _format_time(value: datetime | None) -> str:
    return value.strftime(TIMESTAMP_FORMAT) if value else ""


@dataclass(frozen=True, slots=True)
class SchemaField:
    """One column of a data product schema."""
    name: str
    type: str
    comment: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d = {"name": self.name, "type": self.type}
        if self.comment is not None:
            d["comment"] = self.comment
        return d


@dataclass(frozen=True, slots=True)
class ProductSchema:
    """Ordered column list of a data product, in catalog order."""
    fields: tuple[SchemaField, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "struct",
            "fields": [f.to_dict() for f in self.fields],
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
