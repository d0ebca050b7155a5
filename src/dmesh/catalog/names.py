"""Qualified data product names."""

from __future__ import annotations

import re

from .errors import MalformedNameError
from .types import QualifiedName


# Segment: letter, digit or underscore first, then letters, digits, underscores, hyphens
SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_\-]*$")

MAX_SEGMENT_LENGTH = 255


def validate_segment(segment: str) -> bool:
    """Check if a name segment is valid."""
    if not segment:
        return False
    if len(segment) > MAX_SEGMENT_LENGTH:
        return False
    return bool(SEGMENT_PATTERN.match(segment))


def parse_qualified_name(name: str) -> QualifiedName:
    """
    Split a data product name into domain and product.

    Args:
        name: Name like "sales.orders"

    Returns:
        QualifiedName

    Raises:
        MalformedNameError: Unless the name is exactly two valid segments
    """
    if not isinstance(name, str):
        raise MalformedNameError(f"Data product name must be a string, got {type(name).__name__}")

    parts = name.split(".")
    if len(parts) != 2:
        raise MalformedNameError(
            f"Invalid data product name format, expected domain.product: {name!r}"
        )

    domain, product = parts
    for segment in parts:
        if not validate_segment(segment):
            raise MalformedNameError(
                f"Invalid segment {segment!r} in data product name {name!r}"
            )

    return QualifiedName(domain=domain, product=product)
