"""Query federation bridge - ad hoc SQL over data products in object storage.

Each request gets its own in-memory DuckDB session configured with the
credentials current at open time. Sessions never re-bind credentials; if
they are revoked mid-session, close and open a new one.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import duckdb

from ..catalog.names import parse_qualified_name
from ..config import Config
from ..security.provider import CredentialProvider
from .errors import EngineInitError, ExecutionError, RegistrationError, RowScanError
from .sql import detect_storage_format, registration_statements, storage_setup_statements
from .types import QueryResult, QuerySession


logger = logging.getLogger(__name__)


class QueryFederationBridge:
    """
    Binds data products into engine sessions and runs SQL against them.

    Usage:
        with bridge.open_session() as session:
            bridge.register_product(session, "sales.orders", descriptor.location)
            result = bridge.execute(session, "SELECT count(*) FROM sales.orders")
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        config: Config,
        connect: Callable[..., Any] = duckdb.connect,
    ):
        self.credentials = credentials
        self.config = config
        self._connect = connect

    def open_session(self) -> QuerySession:
        """
        Open a new engine session with object storage access configured.

        Raises:
            CredentialError: If no valid credentials are available
            EngineInitError: On connection or extension loading failure
        """
        creds = self.credentials.current()
        engine = self.config.engine

        try:
            connection = self._connect(database=engine.database)
        except duckdb.Error as e:
            raise EngineInitError(f"Failed to open DuckDB connection: {e}") from e

        try:
            statements = storage_setup_statements(
                engine.extensions, self.config.aws.region, creds
            )
            for statement in statements:
                connection.execute(statement)
        except (duckdb.Error, ValueError) as e:
            connection.close()
            raise EngineInitError(f"Failed to configure S3 access in DuckDB: {e}") from e

        logger.debug(f"Opened engine session ({creds.source} credentials, region {self.config.aws.region})")
        return QuerySession(connection=connection)

    def register_product(self, session: QuerySession, qualified_name: str, location: str) -> str:
        """
        Expose a data product as a view named after it.

        The scan used is chosen from the location path: iceberg, delta, or
        a plain batch of parquet files.

        Returns:
            The registered relation name (domain.product)

        Raises:
            MalformedNameError: If the name is not domain.product
            RegistrationError: On a duplicate name, closed session or engine error
        """
        name = parse_qualified_name(qualified_name)
        relation = str(name)

        if session.closed:
            raise RegistrationError(f"Cannot register {relation}: session is closed")
        if relation in session.relations:
            raise RegistrationError(f"Data product already registered in this session: {relation}")
        if not location:
            raise RegistrationError(f"No physical location for data product: {relation}")

        storage_format = detect_storage_format(location)
        try:
            for statement in registration_statements(name, location, storage_format):
                session.connection.execute(statement)
        except (duckdb.Error, ValueError) as e:
            raise RegistrationError(f"Failed to register data product {relation}: {e}") from e

        session.relations[relation] = location
        logger.info(f"Registered {relation} as {storage_format.value} scan of {location}")
        return relation

    def execute(self, session: QuerySession, sql: str) -> QueryResult:
        """
        Run SQL verbatim and read the whole result into memory.

        Raises:
            ExecutionError: With the engine's error message
            RowScanError: If reading the result fails partway
        """
        if session.closed:
            raise ExecutionError("Query execution failed: session is closed", sql=sql)

        start = time.perf_counter()
        try:
            cursor = session.connection.execute(sql)
        except duckdb.Error as e:
            raise ExecutionError(str(e), sql=sql) from e

        description = cursor.description
        if not description:
            return QueryResult()

        columns = tuple(column[0] for column in description)
        try:
            rows = tuple(tuple(row) for row in cursor.fetchall())
        except duckdb.Error as e:
            raise RowScanError(f"Failed to scan row: {e}") from e

        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"Query returned {len(rows)} rows in {elapsed:.1f}ms")
        return QueryResult(columns=columns, rows=rows)

    def close(self, session: QuerySession) -> None:
        """Release a session. Safe to call repeatedly or after failures."""
        session.close()
