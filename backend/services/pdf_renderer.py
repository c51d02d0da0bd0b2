"""PDF opening and page rasterisation using PyMuPDF."""
import logging
import threading
from typing import Optional
import fitz  # PyMuPDF

logger = logging.getLogger(__name__)


class PdfOpenError(Exception):
    """Base class for failures to open a PDF."""


class PasswordRequiredError(PdfOpenError):
    """The PDF is encrypted and no password was given."""

    def __init__(self, message: str = "Password required"):
        super().__init__(message)


class IncorrectPasswordError(PdfOpenError):
    """The PDF is encrypted and the given password was rejected."""

    def __init__(self, message: str = "Incorrect password"):
        super().__init__(message)


class CorruptDocumentError(PdfOpenError):
    """The bytes could not be decoded as a PDF."""


class PdfDocument:
    """Decoded PDF handle able to render pages to PNG."""

    def __init__(self, handle: "fitz.Document"):
        self._handle = handle
        # PyMuPDF documents must not be used from several threads at once
        self._lock = threading.Lock()
        self._page_count = handle.page_count
        self._closed = False

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def is_closed(self) -> bool:
        return self._closed

    def render_page(self, page_number: int, zoom: float) -> bytes:
        """
        Render a page to a PNG image.

        Args:
            page_number: 1-indexed page number
            zoom: Scale factor applied in both directions

        Returns:
            PNG-encoded page surface

        Raises:
            IndexError: Page number out of range
            ValueError: Document was closed
        """
        if not 1 <= page_number <= self.page_count:
            raise IndexError(f"Page {page_number} out of range (1-{self.page_count})")

        try:
            with self._lock:
                if self._closed:
                    raise ValueError("Document is closed")
                page = self._handle[page_number - 1]
                pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
                png = pixmap.tobytes("png")
        finally:
            # A close() that arrived mid-render is completed by the renderer
            if self._closed:
                self._release_handle()

        logger.debug(f"Rendered page {page_number} at zoom {zoom}: {pixmap.width}x{pixmap.height}")
        return png

    def close(self) -> None:
        """
        Close the document without waiting for an in-flight render.

        Safe to call from the event loop; if a render holds the handle, that
        render releases it when it finishes.
        """
        self._closed = True
        self._release_handle()

    def _release_handle(self) -> None:
        if not self._lock.acquire(blocking=False):
            return
        try:
            if not self._handle.is_closed:
                self._handle.close()
        finally:
            self._lock.release()


def open_pdf(data: bytes, password: Optional[str] = None) -> PdfDocument:
    """
    Open a PDF from memory, authenticating when it is encrypted.

    Args:
        data: Raw file bytes (never modified)
        password: Optional user or owner password

    Returns:
        PdfDocument ready for rendering

    Raises:
        PasswordRequiredError: Encrypted and no password given
        IncorrectPasswordError: Encrypted and the password was rejected
        CorruptDocumentError: Not a readable PDF
    """
    try:
        handle = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        logger.error(f"Failed to open PDF: {str(e)}")
        raise CorruptDocumentError(str(e)) from e

    if handle.needs_pass:
        if not password:
            handle.close()
            raise PasswordRequiredError()
        if not handle.authenticate(password):
            handle.close()
            raise IncorrectPasswordError()

    logger.info(f"Opened PDF: {handle.page_count} pages")
    return PdfDocument(handle)
