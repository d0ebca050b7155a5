"""Shared fixtures."""

import pytest

from dmesh.audit.sinks import AuditSink
from dmesh.audit.trail import AuditTrail
from dmesh.catalog.resolver import CatalogResolver
from dmesh.config import Config
from dmesh.query.bridge import QueryFederationBridge
from dmesh.security.provider import CredentialProvider

from fakes import FakeClock, FakeGlueClient, RecordingConnection, StaticSource, glue_table


class MemorySink(AuditSink):
    def __init__(self):
        self.events = []

    def send(self, event) -> None:
        self.events.append(event)


@pytest.fixture
def config() -> Config:
    config = Config()
    config.aws.account_id = "123456789012"
    config.aws.default_role = "Analyst"
    return config


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source(clock) -> StaticSource:
    return StaticSource("sso", clock=clock, role_aware=True)


@pytest.fixture
def provider(config, source, clock) -> CredentialProvider:
    return CredentialProvider(config.aws, sources=[source], clock=clock)


@pytest.fixture
def glue() -> FakeGlueClient:
    """Catalog with a sales domain and a finance domain."""
    return FakeGlueClient({
        "sales": [
            glue_table(
                "orders",
                parameters={
                    "data_product": "true",
                    "table_format": "iceberg",
                    "data_product_type": "table",
                    "owner": "sales-data@example.com",
                },
                location="s3://lake/sales/orders/",
                columns=[
                    {"Name": "order_id", "Type": "bigint", "Comment": "Primary key"},
                    {"Name": "amount", "Type": "decimal(10,2)"},
                ],
                Description="All customer orders",
            ),
            glue_table("staging_orders", location="s3://lake/sales/staging/"),
            glue_table("refunds", parameters={"data_product": ""}, location="s3://lake/sales/refunds/"),
        ],
        "finance": [
            glue_table("ledger", parameters={"data_product": "true"}, location="s3://lake/finance/ledger_delta/"),
            glue_table("fx_rates", parameters={"data_product": "true", "table_format": "parquet"}),
            glue_table("scratch"),
        ],
        "empty": [],
    })


@pytest.fixture
def resolver(provider, config, glue) -> CatalogResolver:
    return CatalogResolver(provider, config, client_factory=lambda creds: glue)


@pytest.fixture
def connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture
def bridge(provider, config, connection) -> QueryFederationBridge:
    return QueryFederationBridge(provider, config, connect=lambda **kwargs: connection)


@pytest.fixture
def audit_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def audit(audit_sink) -> AuditTrail:
    return AuditTrail(sinks=[audit_sink])
