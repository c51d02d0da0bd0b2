"""Unit tests for pdf_renderer."""
import pytest
from conftest import PDF_PASSWORD
from services.pdf_renderer import (
    CorruptDocumentError,
    IncorrectPasswordError,
    PasswordRequiredError,
    PdfOpenError,
    open_pdf,
)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestOpenPdf:
    """Tests for opening documents."""

    def test_open_plain_pdf(self, pdf_bytes):
        pdf = open_pdf(pdf_bytes)
        assert pdf.page_count == 3
        pdf.close()

    def test_encrypted_without_password(self, encrypted_pdf_bytes):
        with pytest.raises(PasswordRequiredError):
            open_pdf(encrypted_pdf_bytes)

    def test_encrypted_with_wrong_password(self, encrypted_pdf_bytes):
        with pytest.raises(IncorrectPasswordError):
            open_pdf(encrypted_pdf_bytes, password="wrong")

    def test_encrypted_with_correct_password(self, encrypted_pdf_bytes):
        pdf = open_pdf(encrypted_pdf_bytes, password=PDF_PASSWORD)
        assert pdf.page_count == 2
        pdf.close()

    def test_failed_attempt_leaves_bytes_usable(self, encrypted_pdf_bytes):
        """A rejected password does not prevent a later retry on the same bytes."""
        original = bytes(encrypted_pdf_bytes)
        with pytest.raises(IncorrectPasswordError):
            open_pdf(encrypted_pdf_bytes, password="wrong")

        assert encrypted_pdf_bytes == original
        pdf = open_pdf(encrypted_pdf_bytes, password=PDF_PASSWORD)
        assert pdf.page_count == 2
        pdf.close()

    @pytest.mark.parametrize("data", [b"not a pdf at all", b""])
    def test_corrupt_bytes(self, data):
        with pytest.raises(CorruptDocumentError):
            open_pdf(data)

    def test_errors_share_base_class(self):
        assert issubclass(PasswordRequiredError, PdfOpenError)
        assert issubclass(IncorrectPasswordError, PdfOpenError)
        assert issubclass(CorruptDocumentError, PdfOpenError)


class TestRenderPage:
    """Tests for page rasterisation."""

    def test_render_returns_png(self, pdf_bytes):
        pdf = open_pdf(pdf_bytes)
        png = pdf.render_page(1, zoom=1.0)
        assert png.startswith(PNG_SIGNATURE)
        pdf.close()

    def test_zoom_increases_size(self, pdf_bytes):
        pdf = open_pdf(pdf_bytes)
        small = pdf.render_page(2, zoom=0.5)
        large = pdf.render_page(2, zoom=1.5)
        # IHDR width field
        small_width = int.from_bytes(small[16:20], "big")
        large_width = int.from_bytes(large[16:20], "big")
        assert large_width == pytest.approx(small_width * 3, abs=3)
        pdf.close()

    @pytest.mark.parametrize("page_number", [0, 4])
    def test_page_out_of_range(self, pdf_bytes, page_number):
        pdf = open_pdf(pdf_bytes)
        with pytest.raises(IndexError):
            pdf.render_page(page_number, zoom=1.0)
        pdf.close()


class TestClose:
    """Tests for releasing the document."""

    def test_close_then_render_fails(self, pdf_bytes):
        pdf = open_pdf(pdf_bytes)
        pdf.close()

        assert pdf.is_closed
        assert pdf.page_count == 3
        with pytest.raises(ValueError):
            pdf.render_page(1, zoom=1.0)

    def test_close_does_not_wait_for_render(self, pdf_bytes):
        """Closing while a render holds the handle returns at once."""
        pdf = open_pdf(pdf_bytes)
        handle = pdf._handle

        # Simulate a render in flight on another thread
        pdf._lock.acquire()
        try:
            pdf.close()
            assert pdf.is_closed
            assert not handle.is_closed
        finally:
            pdf._lock.release()

        # The next renderer to finish releases the handle
        with pytest.raises(ValueError):
            pdf.render_page(1, zoom=1.0)
        assert handle.is_closed

    def test_close_twice(self, pdf_bytes):
        pdf = open_pdf(pdf_bytes)
        pdf.close()
        pdf.close()
        assert pdf._handle.is_closed
