"""SQL text for engine sessions.

Identifiers are double-quoted and string literals single-quoted with
embedded quotes doubled before anything is interpolated into a statement.
"""

from __future__ import annotations

import re
from typing import Iterable

from ..catalog.types import QualifiedName, StorageFormat
from ..security.types import Credentials


EXTENSION_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

SCAN_FUNCTIONS = {
    StorageFormat.ICEBERG: "iceberg_scan",
    StorageFormat.DELTA: "delta_scan",
    StorageFormat.PARQUET: "parquet_scan",
}

# Extensions a scan function needs loaded first
FORMAT_EXTENSIONS = {
    StorageFormat.ICEBERG: "iceberg",
    StorageFormat.DELTA: "delta",
}


def quote_identifier(name: str) -> str:
    """Quote an identifier for use in SQL."""
    if "\x00" in name:
        raise ValueError("Identifier contains a NUL character")
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Quote a string literal for use in SQL."""
    if "\x00" in value:
        raise ValueError("String literal contains a NUL character")
    return "'" + value.replace("'", "''") + "'"


def detect_storage_format(location: str) -> StorageFormat:
    """
    Guess the table format from the physical path.

    'iceberg' in the path wins over 'delta'; anything else is treated as a
    plain batch of parquet files. Matching is case-sensitive, as object
    keys are. This is a naming heuristic, not an inspection of the data.
    """
    if "iceberg" in location:
        return StorageFormat.ICEBERG
    if "delta" in location:
        return StorageFormat.DELTA
    return StorageFormat.PARQUET


def parquet_glob(location: str) -> str:
    """File pattern for a directory of parquet files."""
    if location.endswith(".parquet") or "*" in location:
        return location
    return location.rstrip("/") + "/*.parquet"


def scan_expression(location: str, storage_format: StorageFormat) -> str:
    function = SCAN_FUNCTIONS[storage_format]
    if storage_format is StorageFormat.PARQUET:
        location = parquet_glob(location)
    return f"{function}({quote_literal(location)})"


def load_extension_statements(extension: str) -> list[str]:
    if not EXTENSION_PATTERN.match(extension):
        raise ValueError(f"Invalid extension name: {extension!r}")
    return [f"INSTALL {extension}", f"LOAD {extension}"]


def registration_statements(
    name: QualifiedName,
    location: str,
    storage_format: StorageFormat,
) -> list[str]:
    """Statements that expose a data product as view <domain>.<product>."""
    statements: list[str] = []

    extension = FORMAT_EXTENSIONS.get(storage_format)
    if extension:
        statements += load_extension_statements(extension)

    schema = quote_identifier(name.domain)
    view = f"{schema}.{quote_identifier(name.product)}"
    statements.append(f"CREATE SCHEMA IF NOT EXISTS {schema}")
    statements.append(
        f"CREATE VIEW {view} AS SELECT * FROM {scan_expression(location, storage_format)}"
    )
    return statements


def storage_setup_statements(
    extensions: Iterable[str],
    region: str,
    credentials: Credentials,
) -> list[str]:
    """Statements that give a session access to object storage."""
    statements: list[str] = []
    for extension in extensions:
        statements += load_extension_statements(extension)

    statements.append(f"SET s3_region = {quote_literal(region)}")
    statements.append(f"SET s3_access_key_id = {quote_literal(credentials.access_key_id)}")
    statements.append(f"SET s3_secret_access_key = {quote_literal(credentials.secret_access_key)}")
    if credentials.session_token:
        statements.append(f"SET s3_session_token = {quote_literal(credentials.session_token)}")
    return statements
