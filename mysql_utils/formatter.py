"""
Rendering of query results.
"""

import csv
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, TextIO

from .models import QueryResult


class OutputFormat:
    """Supported output formats for query results."""
    TEXT = "text"
    CSV = "csv"
    JSON = "json"

    CHOICES = (TEXT, CSV, JSON)


def _to_text(value: Any) -> str:
    if value is None:
        return 'NULL'
    if isinstance(value, (bytes, bytearray)):
        return value.decode('utf-8', errors='replace')
    return str(value)


def _to_json(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode('utf-8', errors='replace')
    return str(value)


def write_text(result: QueryResult, out: TextIO) -> None:
    """Write a bordered table like the interactive mysql client."""
    if not result.columns:
        return
    cells = [[_to_text(row.get(col)) for col in result.columns] for row in result.rows]
    widths = [
        max([len(col)] + [len(line[i]) for line in cells])
        for i, col in enumerate(result.columns)
    ]
    border = '+' + '+'.join('-' * (w + 2) for w in widths) + '+\n'

    out.write(border)
    out.write('| ' + ' | '.join(col.ljust(w) for col, w in zip(result.columns, widths)) + ' |\n')
    out.write(border)
    for line in cells:
        out.write('| ' + ' | '.join(cell.ljust(w) for cell, w in zip(line, widths)) + ' |\n')
    out.write(border)


def write_csv(result: QueryResult, out: TextIO) -> None:
    writer = csv.writer(out, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(result.columns)
    writer.writerows(
        [row.get(col) for col in result.columns]
        for row in result.rows
    )


def write_json(result: QueryResult, out: TextIO) -> None:
    json.dump(result.rows, out, default=_to_json, indent=2)
    out.write('\n')


WRITERS = {
    OutputFormat.TEXT: write_text,
    OutputFormat.CSV: write_csv,
    OutputFormat.JSON: write_json,
}


def write_result(result: QueryResult, out: TextIO, output_format: str = OutputFormat.TEXT) -> None:
    if output_format not in WRITERS:
        raise ValueError(f"Unsupported output format: {output_format}")
    WRITERS[output_format](result, out)
