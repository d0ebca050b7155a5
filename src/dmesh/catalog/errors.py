"""Catalog error hierarchy."""

from __future__ import annotations


class CatalogError(Exception):
    """Base exception for catalog errors."""
    pass


class MalformedNameError(CatalogError, ValueError):
    """Raised when a name is not of the form domain.product."""
    pass


class NotFoundError(CatalogError):
    """Raised when no catalog entry exists for a name."""
    pass


class NotADataProductError(CatalogError):
    """Raised when a catalog entry exists but is not marked as a data product."""
    pass


class ListFailedError(CatalogError):
    """Raised when the catalog cannot be enumerated."""
    pass
