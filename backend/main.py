"""Main entry point for PDF Table Extractor AI API."""
import logging
from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from config import CORS_ORIGINS, PORT
from models.api import DocumentView, MergeModeRequest, PageView, PasswordRequest, TableIndexResponse
from services.document_controller import (
    DocumentController,
    DocumentControllerError,
    EmptySelectionError,
    InvalidStateError,
    PageNotFoundError,
    TableNotFoundError,
)
from services.presenter import build_document_view, build_page_view, build_table_index
from services.table_extraction_client import TableExtractionClient

# Initialize logging
logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

# Initialize FastAPI app
app = FastAPI(
    title="PDF Table Extractor AI",
    description="Extracts tables from PDF pages with a vision model and exports them as CSV",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# Initialize services (will be done on startup)
extraction_client: TableExtractionClient = None
document_controller: DocumentController = None

ERROR_STATUS_CODES = {
    PageNotFoundError: 404,
    TableNotFoundError: 404,
    InvalidStateError: 409,
    EmptySelectionError: 400,
}


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup; a missing API key aborts startup."""
    global extraction_client, document_controller

    logger.info("Initializing PDF Table Extractor services...")

    try:
        extraction_client = TableExtractionClient()
        logger.info("Initialized TableExtractionClient")

        document_controller = DocumentController(extraction_client)
        logger.info("Initialized DocumentController")

        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.exception_handler(DocumentControllerError)
async def controller_error_handler(request: Request, exc: DocumentControllerError):
    """Translate rejected controller operations into HTTP errors."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 400)
    logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def _require_document() -> DocumentController:
    if document_controller.pdf is None:
        raise HTTPException(status_code=409, detail="No document loaded")
    return document_controller


def _csv_response(filename: str, content: str) -> Response:
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "PDF Table Extractor AI API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "pdf-table-extractor",
        "version": "1.0.0"
    }


@app.get("/document", response_model=DocumentView)
async def get_document() -> DocumentView:
    """Current session state."""
    return build_document_view(document_controller)


@app.post("/document", response_model=DocumentView)
async def upload_document(file: UploadFile = File(...)) -> DocumentView:
    """
    Select a new PDF, replacing the current one.

    Load failures are reported in the returned view rather than as HTTP
    errors, so the client can prompt for a password or show the message.
    """
    if file.content_type != PDF_CONTENT_TYPE:
        raise HTTPException(status_code=415, detail="Please upload a PDF file.")

    await document_controller.select_file(file)
    await document_controller.wait_for_renders()
    return build_document_view(document_controller)


@app.post("/document/password", response_model=DocumentView)
async def submit_password(request: PasswordRequest) -> DocumentView:
    """Retry opening the current file with a password."""
    if document_controller.document is None:
        raise HTTPException(status_code=409, detail="No file selected")

    await document_controller.submit_password(request.password)
    await document_controller.wait_for_renders()
    return build_document_view(document_controller)


@app.delete("/document", response_model=DocumentView)
async def reset_document() -> DocumentView:
    """Start over."""
    document_controller.reset()
    return build_document_view(document_controller)


@app.get("/pages/{page_number}/image")
async def get_page_image(page_number: int) -> Response:
    """Rendered page surface as PNG."""
    page = _require_document().get_page(page_number)
    if not page.is_rendered:
        raise HTTPException(status_code=409, detail=f"Page {page_number} is not rendered yet")
    return Response(content=page.surface, media_type="image/png")


@app.post("/pages/{page_number}/extract", response_model=PageView)
async def extract_page(page_number: int) -> PageView:
    """
    Extract tables from one page.

    Extraction failures are local to the page and come back as a page with
    status "error", not as an HTTP error.
    """
    controller = _require_document()
    await controller.extract_page(page_number)
    return build_page_view(controller.get_page(page_number), controller)


@app.get("/tables", response_model=TableIndexResponse)
async def list_tables() -> TableIndexResponse:
    """Aggregate index of every extracted table."""
    controller = _require_document()
    return TableIndexResponse(
        tables=build_table_index(controller),
        selected_table_ids=sorted(controller.selected_table_ids)
    )


@app.get("/tables/{table_id}/csv")
async def download_table(table_id: str) -> Response:
    """Download one table as CSV."""
    filename, content = _require_document().export_table_csv(table_id)
    logger.info(f"Exporting {table_id} as {filename}")
    return _csv_response(filename, content)


@app.put("/merge", response_model=DocumentView)
async def set_merge_mode(request: MergeModeRequest) -> DocumentView:
    """Enter or leave merge mode."""
    controller = _require_document()
    controller.set_merge_mode(request.active)
    return build_document_view(controller)


@app.post("/merge/selection/{table_id}", response_model=DocumentView)
async def toggle_selection(table_id: str) -> DocumentView:
    """Toggle a table's membership in the merge selection."""
    controller = _require_document()
    controller.toggle_table_selection(table_id)
    return build_document_view(controller)


@app.delete("/merge/selection", response_model=DocumentView)
async def clear_selection() -> DocumentView:
    """Empty the merge selection."""
    controller = _require_document()
    controller.clear_selection()
    return build_document_view(controller)


@app.get("/merge/csv")
async def download_merged() -> Response:
    """Download the selected tables merged into one CSV."""
    controller = _require_document()
    filename, content = controller.export_merged_csv()
    logger.info(f"Exporting {len(controller.selected_tables())} merged tables")
    return _csv_response(filename, content)


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting PDF Table Extractor AI API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
