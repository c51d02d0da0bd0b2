"""Read-only projection of controller state into API view models."""
from typing import List

from config import MAX_UPLOAD_HINT
from models.api import DocumentView, MergeToolbarView, PageView, TableSummary, TableView
from models.page import PageStatus
from models.table import make_table_id
from services.document_controller import DocumentController
from services.page_controller import PageController

DEFAULT_TABLE_TITLE = "Extracted Table"
NO_TABLES_NOTICE = "No tables were found on this page."


def build_page_view(page: PageController, controller: DocumentController) -> PageView:
    """Project one page; tables without rows are not shown."""
    page_data = page.page_data
    tables: List[TableView] = []

    if page_data.status == PageStatus.SUCCESS:
        for index, table in enumerate(page_data.tables):
            if not table.data:
                continue
            table_id = make_table_id(page.page_number, index)
            tables.append(TableView(
                table_id=table_id,
                title=table.title or DEFAULT_TABLE_TITLE,
                header=table.data[0],
                rows=table.data[1:],
                is_selected=table_id in controller.selected_table_ids
            ))

    notice = None
    if page_data.status == PageStatus.SUCCESS and not page_data.tables:
        notice = NO_TABLES_NOTICE

    return PageView(
        page_number=page.page_number,
        status=page_data.status.value,
        is_rendered=page.is_rendered,
        can_extract=page.can_extract,
        render_error=page.render_error,
        error_message=page_data.error_message,
        notice=notice,
        tables=tables
    )


def build_document_view(controller: DocumentController) -> DocumentView:
    """Project the whole session."""
    document = controller.document
    merge_toolbar = None
    if controller.merge_mode:
        selected_count = len(controller.selected_tables())
        merge_toolbar = MergeToolbarView(selected_count=selected_count, can_merge=selected_count > 0)

    return DocumentView(
        filename=document.filename if document else None,
        page_count=document.page_count if document else 0,
        is_processing=controller.is_processing,
        error=controller.error,
        needs_password=controller.needs_password,
        password_error=controller.password_error,
        upload_hint=MAX_UPLOAD_HINT,
        pages=[build_page_view(controller.pages[n], controller) for n in sorted(controller.pages)],
        has_extracted_tables=controller.has_extracted_tables,
        merge_mode=controller.merge_mode,
        merge_toolbar=merge_toolbar
    )


def build_table_index(controller: DocumentController) -> List[TableSummary]:
    """Summaries of the aggregate table index."""
    return [
        TableSummary(
            table_id=ref.table_id,
            page_number=ref.page_number,
            index=ref.index,
            title=ref.table.title or DEFAULT_TABLE_TITLE,
            row_count=len(ref.table.data)
        )
        for ref in controller.all_extracted_tables()
    ]
