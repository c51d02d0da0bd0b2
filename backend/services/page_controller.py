"""Per-page lifecycle: render once, extract on demand."""
import asyncio
import logging
from typing import Callable, Optional

from models.page import PageData, PageStatus
from services.pdf_renderer import PdfDocument
from services.table_extraction_client import TableExtractionClient

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


class LoadToken:
    """
    Marks whether the document a task was started for is still the current one.

    The document controller cancels the token when the document is reset or
    replaced; work that completes afterwards must check `is_current` before
    touching any state.
    """

    def __init__(self):
        self._cancelled = False

    @property
    def is_current(self) -> bool:
        return not self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class PageController:
    """Owns the render and extraction state of one page."""

    def __init__(
        self,
        page_number: int,
        document: PdfDocument,
        client: TableExtractionClient,
        on_complete: Callable[[int, PageData], None],
        token: LoadToken,
        zoom: float
    ):
        self.page_number = page_number
        self.document = document
        self.client = client
        self.on_complete = on_complete
        self.token = token
        self.zoom = zoom

        self.page_data = PageData(page_number=page_number)
        self.surface: Optional[bytes] = None
        # Set when rendering failed; the page then never becomes extractable
        self.render_error: Optional[str] = None

    @property
    def is_rendered(self) -> bool:
        return self.surface is not None

    @property
    def can_extract(self) -> bool:
        return self.is_rendered and self.page_data.status != PageStatus.LOADING

    async def render(self) -> None:
        """Render the page surface once; later calls are no-ops."""
        if self.is_rendered or not self.token.is_current:
            return

        try:
            surface = await asyncio.to_thread(self.document.render_page, self.page_number, self.zoom)
        except Exception as e:
            if self.token.is_current:
                logger.error(f"Error rendering page {self.page_number}: {e}")
                self.render_error = str(e) or UNKNOWN_ERROR_MESSAGE
            return

        if not self.token.is_current:
            logger.debug(f"Discarding stale render of page {self.page_number}")
            return
        if self.surface is None:
            self.surface = surface
            self.render_error = None
            logger.debug(f"Page {self.page_number} rendered ({len(surface)} bytes)")

    async def extract(self) -> PageData:
        """
        Extract tables from the rendered surface.

        No-op while the page is unrendered or an extraction is in flight.

        Returns:
            The page data after the attempt
        """
        if not self.can_extract:
            logger.debug(
                f"Ignoring extract for page {self.page_number}: "
                f"rendered={self.is_rendered}, status={self.page_data.status.value}"
            )
            return self.page_data

        self.page_data = PageData(
            page_number=self.page_number,
            status=PageStatus.LOADING,
            tables=self.page_data.tables
        )
        logger.info(f"Extracting tables from page {self.page_number}")

        try:
            result = await self.client.extract_tables(self.surface)
            self.page_data = PageData(
                page_number=self.page_number,
                status=PageStatus.SUCCESS,
                tables=result.tables
            )
            logger.info(f"Page {self.page_number}: {len(result.tables)} tables extracted")
        except Exception as e:
            logger.error(f"Error extracting from page {self.page_number}: {e}")
            self.page_data = PageData(
                page_number=self.page_number,
                status=PageStatus.ERROR,
                tables=[],
                error_message=str(e) or UNKNOWN_ERROR_MESSAGE
            )

        if self.token.is_current:
            self.on_complete(self.page_number, self.page_data)
        else:
            logger.debug(f"Discarding stale extraction of page {self.page_number}")

        return self.page_data
