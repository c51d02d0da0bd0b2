"""Data models for PDF Table Extractor AI."""
from .document import Document
from .page import PageData, PageStatus
from .table import ExtractedTable, TableExtractionResponse, TableRef, make_table_id
from .api import (
    ExtractedTablePayload,
    TableExtractionPayload,
    PasswordRequest,
    MergeModeRequest,
    TableView,
    PageView,
    MergeToolbarView,
    DocumentView,
    TableSummary,
    TableIndexResponse,
)

__all__ = [
    "Document",
    "PageData",
    "PageStatus",
    "ExtractedTable",
    "TableExtractionResponse",
    "TableRef",
    "make_table_id",
    "ExtractedTablePayload",
    "TableExtractionPayload",
    "PasswordRequest",
    "MergeModeRequest",
    "TableView",
    "PageView",
    "MergeToolbarView",
    "DocumentView",
    "TableSummary",
    "TableIndexResponse",
]
