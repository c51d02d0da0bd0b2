"""CSV encoding of extracted tables, including multi-table merges."""
import re
from typing import Any, List, Sequence

from models.table import ExtractedTable

MERGED_FILENAME = "merged_tables.csv"
DEFAULT_TABLE_FILENAME = "extracted_table"

# Leading characters spreadsheet software treats as the start of a formula
FORMULA_PREFIXES = ("=", "+", "-", "@")


def escape_csv_cell(cell: Any) -> str:
    """
    Escape a single cell for CSV output.

    The cell is always wrapped in double quotes, embedded quotes are doubled,
    and a leading formula character is neutralised with a single quote.

    Args:
        cell: Cell value; None and "" both encode as an empty quoted pair

    Returns:
        Quoted CSV field
    """
    text = "" if cell is None else str(cell)
    if not text:
        return '""'

    escaped = text.replace('"', '""')
    if text.startswith(FORMULA_PREFIXES):
        escaped = f"'{escaped}"

    return f'"{escaped}"'


def encode_rows(rows: Sequence[Sequence[Any]]) -> str:
    """Encode rows as CSV lines joined by a single newline."""
    return "\n".join(",".join(escape_csv_cell(cell) for cell in row) for row in rows)


def encode_table(table: ExtractedTable) -> str:
    """Encode one table, header row included."""
    return encode_rows(table.data)


def merge_tables(tables: Sequence[ExtractedTable]) -> List[List[str]]:
    """
    Combine several tables into one list of rows.

    The header is taken from the first table only. Every table, the first one
    included, then contributes its rows after row 0, so the header rows of
    later tables are always dropped.

    Args:
        tables: Tables in the order they should appear

    Returns:
        Merged rows (empty when no tables are given)
    """
    if not tables:
        return []

    merged: List[List[str]] = []
    if tables[0].data:
        merged.append(list(tables[0].data[0]))

    for table in tables:
        merged.extend(list(row) for row in table.data[1:])

    return merged


def encode_merged(tables: Sequence[ExtractedTable]) -> str:
    """Encode the merge of several tables as one CSV document."""
    return encode_rows(merge_tables(tables))


def table_filename(title: str) -> str:
    """Derive a download filename from a table title."""
    safe_title = re.sub(r"[^a-z0-9]", "_", title or "", flags=re.IGNORECASE).lower()
    return f"{safe_title or DEFAULT_TABLE_FILENAME}.csv"
