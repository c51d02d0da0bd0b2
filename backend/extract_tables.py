"""
Headless table extraction for PDF Table Extractor AI.

This script:
1. Opens a PDF (with an optional password)
2. Renders every page
3. Extracts tables from the requested pages, one page at a time
4. Writes one CSV per table, or a single merged CSV with --merge

Usage:
    python extract_tables.py report.pdf --output-dir out/
    python extract_tables.py report.pdf --password secret --pages 2,3 --merge
"""
import sys
import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from models.page import PageStatus
from services.document_controller import DocumentController
from services.table_extraction_client import TableExtractionClient

logger = logging.getLogger(__name__)


class LocalFile:
    """Adapts a file on disk to the upload interface the controller reads from."""

    def __init__(self, path: Path):
        self.path = path
        self.filename = path.name

    async def read(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)


def parse_pages(value: Optional[str]) -> Optional[List[int]]:
    """Parse a comma-separated list of 1-indexed page numbers."""
    if not value:
        return None
    try:
        return sorted({int(part) for part in value.split(",") if part.strip()})
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid page list: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract tables from a PDF into CSV files")
    parser.add_argument("pdf", type=Path, help="PDF file to process")
    parser.add_argument("--password", help="Password for encrypted PDFs")
    parser.add_argument("--pages", type=parse_pages, help="Comma-separated pages to extract (default: all)")
    parser.add_argument("--merge", action="store_true", help="Write all tables to a single merged CSV")
    parser.add_argument("--output-dir", type=Path, default=Path("."), help="Directory for CSV output")
    return parser


async def run(args: argparse.Namespace, controller: DocumentController) -> int:
    """
    Extract and export tables.

    Returns:
        Process exit code
    """
    await controller.select_file(LocalFile(args.pdf))
    if controller.needs_password and args.password:
        await controller.submit_password(args.password)

    if controller.error:
        logger.error(controller.error)
        return 1
    if controller.needs_password:
        logger.error(controller.password_error)
        return 1

    await controller.wait_for_renders()
    page_numbers = args.pages or sorted(controller.pages)
    logger.info(f"Extracting {len(page_numbers)} of {controller.document.page_count} pages")

    for page_number in page_numbers:
        if page_number not in controller.pages:
            logger.warning(f"Skipping page {page_number}: not in document")
            continue
        page_data = await controller.extract_page(page_number)
        if page_data.status == PageStatus.ERROR:
            logger.error(f"Page {page_number}: {page_data.error_message}")

    tables = controller.all_extracted_tables()
    if not tables:
        logger.warning("No tables found")
        return 0

    args.output_dir.mkdir(parents=True, exist_ok=True)

    if args.merge:
        controller.set_merge_mode(True)
        for ref in tables:
            controller.toggle_table_selection(ref.table_id)
        filename, content = controller.export_merged_csv()
        (args.output_dir / filename).write_text(content, encoding="utf-8")
        logger.info(f"✓ Wrote {len(tables)} merged tables to {args.output_dir / filename}")
    else:
        for ref in tables:
            filename, content = controller.export_table_csv(ref.table_id)
            # Titles are not unique; prefix with the table id
            path = args.output_dir / f"{ref.table_id}_{filename}"
            path.write_text(content, encoding="utf-8")
            logger.info(f"✓ Wrote {path}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main extraction process."""
    args = build_parser().parse_args(argv)

    try:
        controller = DocumentController(TableExtractionClient())
        return asyncio.run(run(args, controller))
    except KeyboardInterrupt:
        logger.warning("Extraction interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Extraction failed: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
