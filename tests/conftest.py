"""Shared fixtures for PDF Table Extractor tests."""
import os
import sys

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import fitz  # PyMuPDF
import pytest
from unittest.mock import AsyncMock, Mock

from models.table import ExtractedTable
from services.table_extraction_client import ExtractionResult

PDF_PASSWORD = "secret"


def make_pdf(page_texts, user_pw=None) -> bytes:
    """Build an in-memory PDF with one page per text, optionally encrypted."""
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page()
        page.insert_text((72, 72), text)

    if user_pw:
        data = doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner-" + user_pw, user_pw=user_pw)
    else:
        data = doc.tobytes()
    doc.close()
    return data


class FakeUpload:
    """Stand-in for an uploaded file."""

    def __init__(self, data: bytes, filename: str = "report.pdf", fail: bool = False):
        self.data = data
        self.filename = filename
        self.fail = fail

    async def read(self) -> bytes:
        if self.fail:
            raise OSError("disk error")
        return self.data


def make_result(tables) -> ExtractionResult:
    """Wrap tables in a successful extraction result."""
    return ExtractionResult(
        tables=tables,
        tokens_input=1000,
        tokens_output=200,
        latency_ms=1500,
        model_used="test-vision-model"
    )


@pytest.fixture
def pdf_bytes():
    """Plain three-page PDF."""
    return make_pdf(["Sales by region", "Headcount", "Appendix"])


@pytest.fixture
def encrypted_pdf_bytes():
    """Two-page PDF protected with PDF_PASSWORD."""
    return make_pdf(["Confidential figures", "More figures"], user_pw=PDF_PASSWORD)


@pytest.fixture
def sales_table():
    return ExtractedTable(
        title="Sales by Region",
        data=[["Region", "Sales"], ["North", "100"], ["South", "200"]]
    )


@pytest.fixture
def headcount_table():
    return ExtractedTable(
        title="Headcount",
        data=[["Team", "People"], ["Ops", "4"], ["Eng", "9"]]
    )


@pytest.fixture
def extraction_client(sales_table):
    """Extraction client mock returning one table per call."""
    client = Mock()
    client.extract_tables = AsyncMock(return_value=make_result([sales_table]))
    return client
