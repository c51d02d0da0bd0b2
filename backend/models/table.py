"""Extracted table data models."""
from dataclasses import dataclass, field
from typing import List


def make_table_id(page_number: int, index: int) -> str:
    """Build the stable identifier of the index-th table on a page."""
    return f"page-{page_number}-table-{index}"


@dataclass
class ExtractedTable:
    """A table read from one page; row 0 is conventionally the header."""
    title: str
    data: List[List[str]] = field(default_factory=list)


@dataclass
class TableExtractionResponse:
    """All tables found on a single page image."""
    tables: List[ExtractedTable] = field(default_factory=list)


@dataclass
class TableRef:
    """Entry of the aggregate table index across the document."""
    table_id: str  # Format: "page-{page_number}-table-{index}"
    page_number: int
    index: int
    table: ExtractedTable
