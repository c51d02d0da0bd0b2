"""API request/response models."""
from typing import List, Optional
from pydantic import BaseModel, Field


class ExtractedTablePayload(BaseModel):
    """A single table as returned by the vision model."""
    title: str
    data: List[List[str]]


class TableExtractionPayload(BaseModel):
    """Exact JSON shape the vision model must return."""
    tables: List[ExtractedTablePayload]


class PasswordRequest(BaseModel):
    """Password submitted for an encrypted PDF."""
    password: str = Field(..., min_length=1)


class MergeModeRequest(BaseModel):
    """Enter or leave merge mode."""
    active: bool


class TableView(BaseModel):
    """A displayable table with its selection state."""
    table_id: str
    title: str
    header: List[str]
    rows: List[List[str]]
    is_selected: bool = False


class PageView(BaseModel):
    """Rendering and extraction state of one page."""
    page_number: int
    status: str
    is_rendered: bool
    can_extract: bool
    render_error: Optional[str] = None
    error_message: Optional[str] = None
    notice: Optional[str] = None
    tables: List[TableView] = []


class MergeToolbarView(BaseModel):
    """State of the merge toolbar."""
    selected_count: int
    can_merge: bool


class DocumentView(BaseModel):
    """Everything a client needs to draw the current session."""
    filename: Optional[str] = None
    page_count: int = 0
    is_processing: bool = False
    error: Optional[str] = None
    needs_password: bool = False
    password_error: Optional[str] = None
    upload_hint: str
    pages: List[PageView] = []
    has_extracted_tables: bool = False
    merge_mode: bool = False
    merge_toolbar: Optional[MergeToolbarView] = None


class TableSummary(BaseModel):
    """Entry of the aggregate table index."""
    table_id: str
    page_number: int
    index: int
    title: str
    row_count: int


class TableIndexResponse(BaseModel):
    """Aggregate table index across all extracted pages."""
    tables: List[TableSummary]
    selected_table_ids: List[str]
