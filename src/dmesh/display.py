"""Plain-text rendering of results and descriptors."""

from __future__ import annotations

import csv
import io
import json

from .catalog.types import DataProductDescriptor
from .query.types import QueryResult


OUTPUT_FORMATS = ("table", "csv", "json")

NO_RESULTS = "No results to display"


def render_result(result: QueryResult, fmt: str = "table") -> str:
    """Render a query result as table, csv or json."""
    fmt = fmt.lower()
    if fmt == "table":
        return format_table(result)
    if fmt == "csv":
        return format_csv(result)
    if fmt == "json":
        return format_json(result)
    raise ValueError(f"Unsupported output format: {fmt}")


def _cell(value) -> str:
    return "NULL" if value is None else str(value)


def format_table(result: QueryResult) -> str:
    if not result.columns:
        return NO_RESULTS

    widths = [len(col) for col in result.columns]
    for row in result.rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(_cell(value)))

    def line(values) -> str:
        return "".join(f"| {v:<{widths[i]}} " for i, v in enumerate(values)) + "|"

    lines = [
        line(result.columns),
        "".join("|" + "-" * (w + 2) for w in widths) + "|",
    ]
    lines += [line([_cell(v) for v in row]) for row in result.rows]
    lines.append("")
    lines.append(f"{result.row_count} rows returned")
    return "\n".join(lines)


def format_csv(result: QueryResult) -> str:
    if not result.columns:
        return NO_RESULTS

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(result.columns)
    for row in result.rows:
        writer.writerow(["" if v is None else v for v in row])
    return buf.getvalue().rstrip("\n")


def format_json(result: QueryResult) -> str:
    if not result.columns:
        return NO_RESULTS
    return json.dumps(result.to_records(), indent=2, default=str)


def format_descriptor(descriptor: DataProductDescriptor) -> str:
    """Operator-facing summary of a data product."""
    d = descriptor.to_dict()
    lines = [
        "Data Product Information",
        "========================",
        f"Name:         {d['name']}",
        f"Domain:       {d['domain']}",
        f"Description:  {d['description']}",
        f"Type:         {d['type']}",
        f"Format:       {d['format']}",
        f"Location:     {d['location']}",
        f"Owner:        {d['owner']}",
        f"Created:      {d['created_at']}",
        f"Last Updated: {d['updated_at']}",
        "",
        "Tags:",
    ]
    for key in sorted(d["tags"]):
        lines.append(f"  {key}: {d['tags'][key]}")
    return "\n".join(lines)
