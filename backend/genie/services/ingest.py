"""
Text extraction for uploaded project briefs (PDF, DOCX, XLSX, TXT).
"""
import csv
import io
import logging
from pathlib import Path

import pdfplumber
from docx import Document
from openpyxl import load_workbook

from genie.core.exceptions import UnsupportedFileTypeError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".txt", ".md", ".pdf", ".docx", ".xlsx"}


def _read_pdf(data: bytes) -> str:
    pages = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                pages.append(text)
    return "\n".join(pages)


def _read_docx(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    paragraphs = [p.text.strip() for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            paragraphs.append("\t".join(cell.text.strip() for cell in row.cells))
    return "\n".join(paragraphs)


def _read_xlsx(data: bytes) -> str:
    """First worksheet as CSV text"""
    wb = load_workbook(filename=io.BytesIO(data), data_only=True, read_only=True)
    try:
        sheet = wb.worksheets[0]
        out = io.StringIO()
        writer = csv.writer(out, lineterminator="\n")
        for row in sheet.iter_rows(values_only=True):
            writer.writerow(["" if value is None else value for value in row])
        return out.getvalue()
    finally:
        wb.close()


def extract_text(filename: str, data: bytes) -> str:
    """
    Extract plain text from an uploaded file.

    Args:
        filename: Original file name; the extension selects the reader
        data: Raw file bytes

    Returns:
        Extracted text (may be empty for image-only documents)

    Raises:
        UnsupportedFileTypeError: Extension is not one of SUPPORTED_EXTENSIONS
    """
    suffix = Path(filename or "").suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileTypeError(filename)

    if suffix == ".pdf":
        content = _read_pdf(data)
    elif suffix == ".docx":
        content = _read_docx(data)
    elif suffix == ".xlsx":
        content = _read_xlsx(data)
    else:
        content = data.decode("utf-8", errors="replace")

    logger.info(f"Extracted {len(content)} characters from {filename}")
    return content
