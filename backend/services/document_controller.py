"""
Document Controller for PDF Table Extractor AI.

Owns one session's document lifecycle: file selection, password retries,
the per-page controllers, the aggregate of extracted tables, and merge-mode
selection.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Set, Tuple

from config import RENDER_ZOOM
from models.document import Document
from models.page import PageData, PageStatus
from models.table import ExtractedTable, TableRef, make_table_id
from services import csv_encoder
from services.page_controller import LoadToken, PageController
from services.pdf_renderer import (
    PdfDocument,
    CorruptDocumentError,
    IncorrectPasswordError,
    PasswordRequiredError,
    open_pdf,
)
from services.table_extraction_client import TableExtractionClient

logger = logging.getLogger(__name__)

FILE_UNREADABLE_MESSAGE = "Could not read the file."
CORRUPT_DOCUMENT_MESSAGE = "Could not read the PDF file. It may be corrupted or not a valid PDF."
PASSWORD_REQUIRED_MESSAGE = "This PDF is password-protected. Please enter the password."
INCORRECT_PASSWORD_MESSAGE = "Incorrect password. Please try again."


class DocumentControllerError(Exception):
    """Base class for rejected controller operations."""


class PageNotFoundError(DocumentControllerError):
    """No page with the requested number is loaded."""


class TableNotFoundError(DocumentControllerError):
    """No extracted table has the requested id."""


class InvalidStateError(DocumentControllerError):
    """The operation is not allowed in the current state."""


class EmptySelectionError(DocumentControllerError):
    """A merge was requested with no tables selected."""


class DocumentController:
    """Holds all state of one user session."""

    def __init__(self, client: TableExtractionClient, zoom: float = RENDER_ZOOM):
        self.client = client
        self.zoom = zoom
        self._token = LoadToken()
        self._render_tasks: List[asyncio.Task] = []
        self._clear()

    def _clear(self) -> None:
        self.document: Optional[Document] = None
        self.pdf: Optional[PdfDocument] = None
        self.error: Optional[str] = None
        self.is_processing = False
        self.needs_password = False
        self.password_error: Optional[str] = None
        self.pages: Dict[int, PageController] = {}
        self.pages_data: Dict[int, PageData] = {}
        self.merge_mode = False
        self.selected_table_ids: Set[str] = set()

    def reset(self) -> None:
        """Drop the current document and restore the initial state."""
        self._token.cancel()
        self._token = LoadToken()

        for task in self._render_tasks:
            task.cancel()
        self._render_tasks = []

        if self.pdf is not None:
            self.pdf.close()

        self._clear()
        logger.debug("Document state reset")

    async def select_file(self, upload) -> None:
        """
        Load a newly selected file, replacing any previous document.

        Args:
            upload: Object with a `filename` and an async `read()`
        """
        if self.is_processing:
            logger.warning("Ignoring file selection while another file is processing")
            return

        self.reset()
        token = self._token
        filename = getattr(upload, "filename", None) or "document.pdf"
        self.is_processing = True

        try:
            data = await upload.read()
        except Exception as e:
            logger.error(f"Error reading file {filename}: {e}", exc_info=True)
            if token.is_current:
                self.error = FILE_UNREADABLE_MESSAGE
                self.is_processing = False
            return

        if not token.is_current:
            logger.debug(f"Discarding read of {filename}: session was reset")
            return

        self.document = Document(filename=filename, data=bytes(data))
        logger.info(f"Selected file {filename} ({len(data)} bytes)")
        self._try_load()

    async def submit_password(self, password: str) -> None:
        """Retry loading the stored file with a password."""
        if self.document is None or self.pdf is not None or not password or self.is_processing:
            return
        self._try_load(password)

    def _try_load(self, password: Optional[str] = None) -> None:
        self.is_processing = True
        self.error = None
        self.password_error = None

        try:
            pdf = open_pdf(self.document.data, password=password)
        except (PasswordRequiredError, IncorrectPasswordError) as e:
            logger.info(f"Password needed for {self.document.filename}: {e}")
            self.needs_password = True
            self.password_error = (
                INCORRECT_PASSWORD_MESSAGE
                if isinstance(e, IncorrectPasswordError)
                else PASSWORD_REQUIRED_MESSAGE
            )
            self.pdf = None
        except CorruptDocumentError as e:
            logger.error(f"Error loading PDF {self.document.filename}: {e}")
            self.error = str(e) or CORRUPT_DOCUMENT_MESSAGE
            self.document = None
        else:
            self.pdf = pdf
            self.needs_password = False
            self.document.page_count = pdf.page_count
            self._create_pages()
            logger.info(f"Loaded {self.document.filename}: {pdf.page_count} pages")
        finally:
            self.is_processing = False

    def _create_pages(self) -> None:
        self._render_tasks = []
        for page_number in range(1, self.pdf.page_count + 1):
            page = PageController(
                page_number=page_number,
                document=self.pdf,
                client=self.client,
                on_complete=self._on_extraction_complete,
                token=self._token,
                zoom=self.zoom
            )
            self.pages[page_number] = page
            self._render_tasks.append(asyncio.create_task(page.render()))

    async def wait_for_renders(self) -> None:
        """Wait until every scheduled page render has finished."""
        tasks = list(self._render_tasks)
        if not tasks:
            return

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Page render failed: {result}")

    def _on_extraction_complete(self, page_number: int, page_data: PageData) -> None:
        self.pages_data[page_number] = page_data

    def get_page(self, page_number: int) -> PageController:
        page = self.pages.get(page_number)
        if page is None:
            raise PageNotFoundError(f"Page {page_number} not found")
        return page

    async def extract_page(self, page_number: int) -> PageData:
        """Trigger extraction of one page."""
        return await self.get_page(page_number).extract()

    def all_extracted_tables(self) -> List[TableRef]:
        """Aggregate index of successfully extracted tables in page, then table order."""
        tables: List[TableRef] = []
        for page_number in sorted(self.pages_data):
            page_data = self.pages_data[page_number]
            if page_data.status != PageStatus.SUCCESS:
                continue
            for index, table in enumerate(page_data.tables):
                tables.append(TableRef(
                    table_id=make_table_id(page_number, index),
                    page_number=page_number,
                    index=index,
                    table=table
                ))
        return tables

    @property
    def has_extracted_tables(self) -> bool:
        return len(self.all_extracted_tables()) > 0

    def selected_tables(self) -> List[ExtractedTable]:
        """Selected tables in aggregate order."""
        return [ref.table for ref in self.all_extracted_tables() if ref.table_id in self.selected_table_ids]

    def set_merge_mode(self, active: bool) -> None:
        """Enter or leave merge mode; entering starts with an empty selection."""
        if active and not self.merge_mode:
            if not self.has_extracted_tables:
                raise InvalidStateError("No extracted tables to combine")
            self.selected_table_ids = set()
        self.merge_mode = active

    def toggle_merge_mode(self) -> None:
        self.set_merge_mode(not self.merge_mode)

    def toggle_table_selection(self, table_id: str) -> Set[str]:
        """Add the table to the selection, or remove it if already selected."""
        if not self.merge_mode:
            raise InvalidStateError("Tables can only be selected in merge mode")

        if table_id in self.selected_table_ids:
            self.selected_table_ids.discard(table_id)
        else:
            self.selected_table_ids.add(table_id)
        return self.selected_table_ids

    def clear_selection(self) -> None:
        self.selected_table_ids = set()

    def export_table_csv(self, table_id: str) -> Tuple[str, str]:
        """
        Encode one extracted table.

        Returns:
            Tuple of (filename, csv text)
        """
        for ref in self.all_extracted_tables():
            if ref.table_id == table_id:
                return csv_encoder.table_filename(ref.table.title), csv_encoder.encode_table(ref.table)
        raise TableNotFoundError(f"Table {table_id} not found")

    def export_merged_csv(self) -> Tuple[str, str]:
        """
        Encode the merge of all selected tables.

        Returns:
            Tuple of (filename, csv text)
        """
        if not self.merge_mode:
            raise InvalidStateError("Tables can only be merged in merge mode")

        tables = self.selected_tables()
        if not tables:
            raise EmptySelectionError("Select at least one table to merge")
        return csv_encoder.MERGED_FILENAME, csv_encoder.encode_merged(tables)
