"""Catalog resolver - data product names to physical descriptors.

Backed by the Glue Data Catalog: databases are domains, tables are
candidate data products. A table is a data product only if its parameters
carry the marker key.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from botocore.exceptions import BotoCoreError, ClientError

from ..config import Config
from ..security.provider import CredentialProvider
from .errors import CatalogError, ListFailedError, NotADataProductError, NotFoundError
from .names import parse_qualified_name
from .types import DataProductDescriptor, ProductSchema, QualifiedName, SchemaField, StorageFormat


logger = logging.getLogger(__name__)

# Glue error code for a missing database or table
ENTITY_NOT_FOUND = "EntityNotFoundException"

# Table parameters carrying descriptor metadata
FORMAT_PARAM = "table_format"
TYPE_PARAM = "data_product_type"
OWNER_PARAM = "owner"


class CatalogResolver:
    """
    Read-only client over the metadata catalog.

    Every call builds its catalog client from the credentials current at
    call time. Descriptors are never cached here.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        config: Config,
        client_factory: Callable[[CredentialProvider], Any] | None = None,
    ):
        self.credentials = credentials
        self.config = config
        self._client_factory = client_factory or _glue_client

    @property
    def marker_key(self) -> str:
        return self.config.catalog.marker_key

    def list_products(self, domain_filter: str | None = None) -> list[str]:
        """
        List qualified names of all data products.

        Args:
            domain_filter: Only this domain (exact match); empty or None for all

        Raises:
            ListFailedError: If the domains themselves cannot be enumerated
        """
        client = self._client()
        names: list[str] = []

        try:
            paginator = client.get_paginator("get_databases")
            for page in paginator.paginate(**self._catalog_args()):
                for database in page.get("DatabaseList", []):
                    domain = database["Name"]
                    if domain_filter and domain != domain_filter:
                        continue
                    names.extend(self._list_domain(client, domain))
        except (ClientError, BotoCoreError) as e:
            raise ListFailedError(f"Failed to list data products: {e}") from e

        return names

    def _list_domain(self, client: Any, domain: str) -> list[str]:
        """Data products in one domain. Failures are logged and yield nothing."""
        found: list[str] = []
        try:
            paginator = client.get_paginator("get_tables")
            for page in paginator.paginate(DatabaseName=domain, **self._catalog_args()):
                for table in page.get("TableList", []):
                    if self._is_data_product(table):
                        found.append(f"{domain}.{table['Name']}")
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error getting tables for database {domain}: {e}")
            return []
        return found

    def resolve(self, qualified_name: str) -> DataProductDescriptor:
        """
        Resolve a data product name to its descriptor.

        Raises:
            MalformedNameError: If the name is not domain.product
            NotFoundError: If the catalog has no such table
            NotADataProductError: If the table is not marked as a data product
            CatalogError: On any other catalog failure
        """
        name = parse_qualified_name(qualified_name)
        client = self._client()
        table = self._get_data_product_table(client, name)

        params = table.get("Parameters") or {}
        storage = table.get("StorageDescriptor") or {}

        descriptor = DataProductDescriptor(
            qualified_name=str(name),
            domain=name.domain,
            product=name.product,
            description=table.get("Description", ""),
            location=storage.get("Location", ""),
            storage_format=self._storage_format(name, params),
            product_type=params.get(TYPE_PARAM, ""),
            owner=params.get(OWNER_PARAM, ""),
            created_at=table.get("CreateTime"),
            updated_at=table.get("UpdateTime"),
            tags=self._get_tags(client, name),
        )
        logger.debug(f"Resolved {name} -> {descriptor.location} ({descriptor.storage_format.value})")
        return descriptor

    def location_of(self, qualified_name: str) -> str:
        """Physical location of a data product."""
        return self.resolve(qualified_name).location

    def schema_of(self, qualified_name: str) -> ProductSchema:
        """
        Column schema of a data product, in catalog column order.

        Raises:
            MalformedNameError, NotFoundError, NotADataProductError, CatalogError
        """
        name = parse_qualified_name(qualified_name)
        client = self._client()
        table = self._get_data_product_table(client, name)

        storage = table.get("StorageDescriptor")
        if not storage:
            raise NotFoundError(f"Data product schema not found: {name}")

        fields = tuple(
            SchemaField(
                name=column["Name"],
                type=column.get("Type", ""),
                comment=column.get("Comment"),
            )
            for column in storage.get("Columns", [])
        )
        return ProductSchema(fields=fields)

    def tag_resource_arn(self, name: QualifiedName) -> str:
        aws = self.config.aws
        account = self.config.catalog.catalog_id or aws.account_id
        return f"arn:{aws.partition}:glue:{aws.region}:{account}:table/{name.domain}/{name.product}"

    def _client(self) -> Any:
        return self._client_factory(self.credentials)

    def _catalog_args(self) -> dict[str, str]:
        catalog_id = self.config.catalog.catalog_id
        return {"CatalogId": catalog_id} if catalog_id else {}

    def _is_data_product(self, table: dict) -> bool:
        return self.marker_key in (table.get("Parameters") or {})

    def _get_data_product_table(self, client: Any, name: QualifiedName) -> dict:
        try:
            response = client.get_table(
                DatabaseName=name.domain,
                Name=name.product,
                **self._catalog_args(),
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == ENTITY_NOT_FOUND:
                raise NotFoundError(f"Data product not found: {name}") from e
            raise CatalogError(f"Failed to get data product details: {e}") from e
        except BotoCoreError as e:
            raise CatalogError(f"Failed to get data product details: {e}") from e

        table = response.get("Table")
        if table is None:
            raise NotFoundError(f"Data product not found: {name}")

        if not self._is_data_product(table):
            raise NotADataProductError(f"Table is not marked as a data product: {name}")

        return table

    def _storage_format(self, name: QualifiedName, params: dict) -> StorageFormat:
        default = StorageFormat.parse(self.config.catalog.default_format) or StorageFormat.ICEBERG

        declared = params.get(FORMAT_PARAM)
        if declared is None:
            return default

        parsed = StorageFormat.parse(declared)
        if parsed is None:
            logger.warning(
                f"Unrecognized {FORMAT_PARAM} '{declared}' on {name}, assuming {default.value}"
            )
            return default
        return parsed

    def _get_tags(self, client: Any, name: QualifiedName) -> dict[str, str]:
        """Resource tags. A failure here is not fatal."""
        try:
            response = client.get_tags(ResourceArn=self.tag_resource_arn(name))
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Could not fetch tags for {name}: {e}")
            return {}
        return dict(response.get("Tags") or {})


def _glue_client(credentials: CredentialProvider):
    return credentials.session().client("glue")
