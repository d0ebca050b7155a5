#!/usr/bin/env python3
"""
Command-line front end for the data mesh.

Usage:
    dmesh discover --domain sales
    dmesh info sales.orders
    dmesh schema sales.orders -o orders.schema.json
    dmesh query -p sales.orders "SELECT count(*) FROM sales.orders"
    dmesh whoami
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path

import yaml
from colorama import Fore, Style, init as colorama_init

from .audit.events import EventOutcome, Operation
from .audit.trail import AuditTrail
from .catalog.errors import CatalogError, NotADataProductError, NotFoundError
from .catalog.resolver import CatalogResolver
from .config import Config, LoggingConfig, load_config
from .display import OUTPUT_FORMATS, format_descriptor, render_result
from .query.bridge import QueryFederationBridge
from .query.errors import QueryError
from .security.access import AccessGuard
from .security.errors import CredentialError
from .security.provider import CredentialProvider


logger = logging.getLogger(__name__)

# Loggers carrying access audit records
AUDIT_LOGGERS = ("dmesh.audit", "dmesh.security.access")


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def print_error(message: str) -> None:
    print(colorize(f"Error: {message}", Fore.RED), file=sys.stderr)


@dataclass
class Components:
    """The component graph, built once per process."""
    config: Config
    credentials: CredentialProvider
    catalog: CatalogResolver
    bridge: QueryFederationBridge
    audit: AuditTrail
    guard: AccessGuard


def build_components(config: Config) -> Components:
    credentials = CredentialProvider(config.aws)
    audit = AuditTrail.from_config(config.audit)
    return Components(
        config=config,
        credentials=credentials,
        catalog=CatalogResolver(credentials, config),
        bridge=QueryFederationBridge(credentials, config),
        audit=audit,
        guard=AccessGuard(credentials, audit),
    )


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Access attempts are always shown, whatever the general level
    for name in AUDIT_LOGGERS:
        logging.getLogger(name).setLevel(min(level, logging.INFO))

    if config.file_logging:
        log_dir = Path(config.log_dir).expanduser()
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(log_dir / "dmesh.log")
        except OSError as e:
            logger.warning(f"File logging disabled, cannot write to {log_dir}: {e}")
            return
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(filename)s:%(lineno)d: %(message)s"
        ))
        logging.getLogger().addHandler(handler)


def _outcome_for(error: Exception) -> EventOutcome:
    if isinstance(error, (NotFoundError, NotADataProductError)):
        return EventOutcome.NOT_FOUND
    return EventOutcome.ERROR


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def cmd_discover(args, c: Components) -> int:
    """List data products."""
    start = time.perf_counter()
    metadata = {"domain": args.domain} if args.domain else {}
    try:
        products = c.catalog.list_products(args.domain)
    except CatalogError as e:
        c.guard.record(
            "", Operation.DISCOVER, EventOutcome.ERROR,
            error_message=str(e), latency_ms=_elapsed_ms(start), metadata=metadata,
        )
        raise

    c.guard.record(
        "", Operation.DISCOVER, EventOutcome.SUCCESS,
        latency_ms=_elapsed_ms(start), result_count=len(products), metadata=metadata,
    )

    if not products:
        print("No data products found")
        return 0

    print(colorize("Available data products:", Style.BRIGHT))
    print()
    for product in products:
        print(f"  {colorize('-', Fore.CYAN)} {product}")
    return 0


def cmd_info(args, c: Components) -> int:
    """Show a data product's descriptor."""
    start = time.perf_counter()
    try:
        descriptor = c.catalog.resolve(args.product)
    except CatalogError as e:
        c.guard.record(
            args.product, Operation.DESCRIBE, _outcome_for(e),
            error_message=str(e), latency_ms=_elapsed_ms(start),
        )
        raise

    c.guard.record(args.product, Operation.DESCRIBE, EventOutcome.SUCCESS, latency_ms=_elapsed_ms(start))
    print(format_descriptor(descriptor))
    return 0


def cmd_schema(args, c: Components) -> int:
    """Show a data product's schema."""
    start = time.perf_counter()
    try:
        schema = c.catalog.schema_of(args.product)
    except CatalogError as e:
        c.guard.record(
            args.product, Operation.SCHEMA, _outcome_for(e),
            error_message=str(e), latency_ms=_elapsed_ms(start),
        )
        raise

    c.guard.record(
        args.product, Operation.SCHEMA, EventOutcome.SUCCESS,
        latency_ms=_elapsed_ms(start), result_count=len(schema.fields),
    )
    output = schema.to_json(indent=None if args.compact else 2)

    if args.output:
        Path(args.output).write_text(output + "\n")
        print(f"Schema written to {args.output}")
    else:
        print(output)
    return 0


def cmd_query(args, c: Components) -> int:
    """Run SQL against one or more data products."""
    products = args.product or []

    for product in products:
        decision = c.guard.check_access(product, Operation.QUERY)
        if not decision.granted:
            print_error(f"Access to {product} denied for {decision.principal}: {decision.reason}")
            return 1

    start = time.perf_counter()
    try:
        locations = {product: c.catalog.location_of(product) for product in products}

        with c.bridge.open_session() as session:
            for product, location in locations.items():
                c.bridge.register_product(session, product, location)
            result = c.bridge.execute(session, args.sql)
    except (CatalogError, QueryError) as e:
        latency = _elapsed_ms(start)
        for product in products:
            c.guard.record(
                product, Operation.QUERY, _outcome_for(e),
                error_message=str(e), latency_ms=latency,
            )
        raise

    latency = _elapsed_ms(start)
    for product in products:
        c.guard.record(
            product, Operation.QUERY, EventOutcome.SUCCESS,
            latency_ms=latency, result_count=result.row_count,
        )

    print(render_result(result, args.output))
    return 0


def cmd_whoami(args, c: Components) -> int:
    """Show the identity behind the current credentials."""
    caller = c.guard.whoami()
    creds = c.credentials.current()
    role = c.credentials.role

    print(colorize("Principal:", Style.BRIGHT), caller.principal)
    print(colorize("Account:", Style.BRIGHT), caller.account or "(unknown)")
    print(colorize("Role:", Style.BRIGHT), role or "(none)")
    print(colorize("Credentials:", Style.BRIGHT), creds.source)
    if creds.expires_at:
        print(colorize("Expires:", Style.BRIGHT), creds.expires_at.isoformat())
    return 0


COMMANDS = {
    "discover": cmd_discover,
    "info": cmd_info,
    "schema": cmd_schema,
    "query": cmd_query,
    "whoami": cmd_whoami,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dmesh",
        description="Command-line tool for discovering and querying data mesh data products",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="Path to config file (default ~/.fedramp-data-mesh/config.yaml)")
    parser.add_argument("--role", help="Assume this role before running the command")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    discover = subparsers.add_parser("discover", help="Discover available data products")
    discover.add_argument("-d", "--domain", default="", help="Filter by domain")

    info = subparsers.add_parser("info", help="Show information about a data product")
    info.add_argument("product", help="Data product (domain.product)")

    schema = subparsers.add_parser("schema", help="Show schema for a data product")
    schema.add_argument("product", help="Data product (domain.product)")
    schema.add_argument("-o", "--output", help="Write schema to file")
    schema.add_argument("--compact", action="store_true", help="Single-line JSON")

    query = subparsers.add_parser("query", help="Query data products using DuckDB")
    query.add_argument("sql", help="SQL to execute")
    query.add_argument(
        "-p", "--product", action="append",
        help="Data product to register (repeatable)",
    )
    query.add_argument(
        "-o", "--output", choices=OUTPUT_FORMATS, default="table",
        help="Output format",
    )

    subparsers.add_parser("whoami", help="Show the current caller identity")

    return parser


def main(argv: list[str] | None = None) -> int:
    colorama_init()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        print_error(f"Failed to load configuration: {e}")
        return 1

    configure_logging(config.logging, args.verbose)
    try:
        components = build_components(config)
    except ValueError as e:
        print_error(f"Invalid configuration: {e}")
        return 1

    try:
        if args.role:
            components.credentials.assume_role(args.role)
            components.guard.record("", Operation.ASSUME_ROLE, EventOutcome.SUCCESS)
        return COMMANDS[args.command](args, components)
    except CredentialError as e:
        print_error(str(e))
    except CatalogError as e:
        print_error(str(e))
    except QueryError as e:
        print_error(f"Query failed: {e}")
    finally:
        components.audit.close()
    return 1


if __name__ == "__main__":
    sys.exit(main())
