"""Test doubles for cloud clients, credential sources and engine connections."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import duckdb
from botocore.exceptions import ClientError

from dmesh.security.errors import CredentialError
from dmesh.security.sources import CredentialSource
from dmesh.security.types import Credentials, Role


def client_error(code: str, operation: str, message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StaticSource(CredentialSource):
    """
    Credential source returning fresh credentials on every load.

    Set `available = False` to make it inapplicable, or `error` to make
    it raise.
    """

    def __init__(self, name: str = "static", clock: FakeClock | None = None, role_aware: bool = False):
        self._name = name
        self.clock = clock
        self.role_aware = role_aware
        self.available = True
        self.error: CredentialError | None = None
        self.calls = 0
        self.roles: list[Role | None] = []

    @property
    def name(self) -> str:
        return self._name

    def load(self, role: Role | None) -> Credentials | None:
        self.calls += 1
        self.roles.append(role)
        if self.error is not None:
            raise self.error
        if not self.available:
            return None
        kwargs = {"issued_at": self.clock()} if self.clock else {}
        return Credentials(
            access_key_id=f"AKIA{self._name.upper()}{self.calls}",
            secret_access_key=f"secret-{self.calls}",
            session_token=f"token-{self.calls}",
            role=role,
            source=self._name,
            **kwargs,
        )


class FakePaginator:
    def __init__(self, pages: list[dict], error: Exception | None = None):
        self.pages = pages
        self.error = error
        self.kwargs: dict | None = None

    def paginate(self, **kwargs):
        self.kwargs = kwargs
        for page in self.pages:
            yield page
        if self.error is not None:
            raise self.error


def glue_table(
    name: str,
    parameters: dict[str, str] | None = None,
    location: str = "",
    columns: list[dict] | None = None,
    **extra: Any,
) -> dict:
    table = {
        "Name": name,
        "Parameters": parameters or {},
        "StorageDescriptor": {
            "Location": location,
            "Columns": columns or [],
        },
    }
    table.update(extra)
    return table


class FakeGlueClient:
    """
    In-memory stand-in for the Glue client.

    databases: database name -> list of table dicts
    """

    def __init__(self, databases: dict[str, list[dict]] | None = None, page_size: int = 2):
        self.databases = databases or {}
        self.page_size = page_size
        self.tags: dict[str, dict[str, str]] = {}
        self.failing_domains: set[str] = set()
        self.fail_databases = False
        self.tags_error: Exception | None = None
        self.get_table_error: Exception | None = None
        self.calls: list[tuple[str, dict]] = []

    def _pages(self, items: list, key: str) -> list[dict]:
        if not items:
            return [{key: []}]
        return [
            {key: items[i:i + self.page_size]}
            for i in range(0, len(items), self.page_size)
        ]

    def get_paginator(self, operation: str) -> FakePaginator:
        self.calls.append(("get_paginator", {"operation": operation}))
        if operation == "get_databases":
            if self.fail_databases:
                return FakePaginator([], client_error("AccessDeniedException", "GetDatabases"))
            dbs = [{"Name": name} for name in self.databases]
            return FakePaginator(self._pages(dbs, "DatabaseList"))
        if operation == "get_tables":
            return _TablesPaginator(self)
        raise AssertionError(f"Unexpected paginator: {operation}")

    def get_table(self, DatabaseName: str, Name: str, **kwargs) -> dict:
        self.calls.append(("get_table", {"DatabaseName": DatabaseName, "Name": Name, **kwargs}))
        if self.get_table_error is not None:
            raise self.get_table_error
        for table in self.databases.get(DatabaseName, []):
            if table["Name"] == Name:
                return {"Table": table}
        raise client_error("EntityNotFoundException", "GetTable", f"Table {Name} not found")

    def get_tags(self, ResourceArn: str) -> dict:
        self.calls.append(("get_tags", {"ResourceArn": ResourceArn}))
        if self.tags_error is not None:
            raise self.tags_error
        return {"Tags": self.tags.get(ResourceArn, {})}


class _TablesPaginator:
    def __init__(self, client: FakeGlueClient):
        self.client = client

    def paginate(self, DatabaseName: str, **kwargs):
        pages = self.client._pages(self.client.databases.get(DatabaseName, []), "TableList")
        for i, page in enumerate(pages):
            if DatabaseName in self.client.failing_domains and i == len(pages) - 1:
                raise client_error("InternalServiceException", "GetTables")
            yield page


class FakeSTSClient:
    def __init__(self, arn: str = "arn:aws:sts::123456789012:assumed-role/Analyst/jdoe"):
        self.arn = arn
        self.error: Exception | None = None
        self.calls = 0

    def get_caller_identity(self) -> dict:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return {"Arn": self.arn, "Account": "123456789012", "UserId": "AROAEXAMPLE:jdoe"}


class FakeCursor:
    def __init__(self, description, rows, fetch_error: Exception | None = None):
        self.description = description
        self._rows = rows
        self._fetch_error = fetch_error

    def fetchall(self):
        if self._fetch_error is not None:
            raise self._fetch_error
        return list(self._rows)


class RecordingConnection:
    """
    Engine connection that records statements instead of running them.

    results: exact SQL -> (column names, rows)
    fail_on: substring -> error raised when a statement contains it
    """

    def __init__(self):
        self.statements: list[str] = []
        self.results: dict[str, tuple[list[str], list[tuple]]] = {}
        self.fail_on: dict[str, Exception] = {}
        self.fetch_errors: dict[str, Exception] = {}
        self.closed = 0

    def execute(self, sql: str):
        self.statements.append(sql)
        for fragment, error in self.fail_on.items():
            if fragment in sql:
                raise error
        if sql in self.results:
            columns, rows = self.results[sql]
            description = [(c, None, None, None, None, None, None) for c in columns]
            return FakeCursor(description, rows, self.fetch_errors.get(sql))
        return FakeCursor(None, [])

    def close(self) -> None:
        self.closed += 1


def engine_error(message: str) -> duckdb.Error:
    return duckdb.Error(message)
