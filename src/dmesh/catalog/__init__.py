"""Catalog resolution - data product names to physical metadata."""

from .errors import (
    CatalogError,
    ListFailedError,
    MalformedNameError,
    NotADataProductError,
    NotFoundError,
)
from .names import parse_qualified_name
from .resolver import CatalogResolver
from .types import DataProductDescriptor, ProductSchema, QualifiedName, SchemaField, StorageFormat

__all__ = [
    "CatalogError",
    "ListFailedError",
    "MalformedNameError",
    "NotADataProductError",
    "NotFoundError",
    "parse_qualified_name",
    "CatalogResolver",
    "DataProductDescriptor",
    "ProductSchema",
    "QualifiedName",
    "SchemaField",
    "StorageFormat",
]
