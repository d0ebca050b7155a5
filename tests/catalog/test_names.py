"""Tests for qualified data product names."""

import pytest

from dmesh.catalog.errors import CatalogError, MalformedNameError
from dmesh.catalog.names import MAX_SEGMENT_LENGTH, parse_qualified_name, validate_segment
from dmesh.catalog.types import QualifiedName


class TestParseQualifiedName:
    def test_two_segments(self):
        name = parse_qualified_name("sales.orders")

        assert name == QualifiedName("sales", "orders")
        assert str(name) == "sales.orders"

    def test_hyphens_and_underscores(self):
        name = parse_qualified_name("customer-360._daily_snapshot")

        assert name.domain == "customer-360"
        assert name.product == "_daily_snapshot"

    def test_leading_digit(self):
        name = parse_qualified_name("sales.2024_orders")

        assert name == QualifiedName("sales", "2024_orders")

    @pytest.mark.parametrize("bad", [
        "",
        "orders",
        "sales.",
        ".orders",
        "a.b.c",
        "sales..orders",
        "sales.or ders",
        "sales.-orders",
        "sales.orders;drop",
        'sales."orders"',
    ])
    def test_malformed(self, bad):
        with pytest.raises(MalformedNameError):
            parse_qualified_name(bad)

    def test_not_a_string(self):
        with pytest.raises(MalformedNameError):
            parse_qualified_name(None)

    def test_error_is_catalog_and_value_error(self):
        with pytest.raises(CatalogError):
            parse_qualified_name("nope")
        with pytest.raises(ValueError):
            parse_qualified_name("nope")


class TestValidateSegment:
    def test_length_limit(self):
        assert validate_segment("a" * MAX_SEGMENT_LENGTH)
        assert not validate_segment("a" * (MAX_SEGMENT_LENGTH + 1))

    def test_empty(self):
        assert not validate_segment("")
