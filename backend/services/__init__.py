"""Services for PDF Table Extractor AI."""
from . import csv_encoder
from .pdf_renderer import (
    PdfDocument,
    PdfOpenError,
    PasswordRequiredError,
    IncorrectPasswordError,
    CorruptDocumentError,
    open_pdf,
)
from .table_extraction_client import TableExtractionClient, ExtractionResult, ExtractionError, TableExtractionError
from .page_controller import PageController, LoadToken
from .document_controller import (
    DocumentController,
    DocumentControllerError,
    PageNotFoundError,
    TableNotFoundError,
    InvalidStateError,
    EmptySelectionError,
)

__all__ = ['csv_encoder', 'PdfDocument', 'PdfOpenError', 'PasswordRequiredError', 'IncorrectPasswordError', 'CorruptDocumentError', 'open_pdf', 'TableExtractionClient', 'ExtractionResult', 'ExtractionError', 'TableExtractionError', 'PageController', 'LoadToken', 'DocumentController', 'DocumentControllerError', 'PageNotFoundError', 'TableNotFoundError', 'InvalidStateError', 'EmptySelectionError']
