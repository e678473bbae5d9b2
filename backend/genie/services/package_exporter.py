"""
Export formats for a project: single files and the complete ZIP package.
All of them render the same engine estimate of the project's research workspace.
"""
import logging
import re
import unicodedata
import zipfile
from io import BytesIO
from typing import Dict, Optional, Tuple

from genie.estimation.config import EstimationConfig
from genie.schemas.project import ProjectData
from genie.services.docx_generator import DocxGenerator
from genie.services.excel_generator import ExcelGenerator
from genie.services.pdf_generator import PDFGenerator
from genie.services.workspace_service import DocumentEstimate, project_estimate

logger = logging.getLogger(__name__)

MEDIA_TYPES: Dict[str, str] = {
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pdf": "application/pdf",
    "zip": "application/zip",
}

excel_generator = ExcelGenerator()
docx_generator = DocxGenerator()
pdf_generator = PDFGenerator()


def theme_slug(theme: str) -> str:
    """ASCII file-name part of a theme; download headers are latin-1 only"""
    ascii_theme = unicodedata.normalize("NFKD", theme).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^A-Za-z0-9.-]+", "_", ascii_theme).strip("_.") or "Project"


def export_filenames(theme: str) -> Dict[str, str]:
    slug = theme_slug(theme)
    return {
        "docx": f"0_DOKUMEN_PENELITIAN_{slug}.docx",
        "xlsx": f"4_File_Proyek_{slug}_Strict.xlsx",
        "pdf": f"MASTER_REPORT_{slug}.pdf",
        "zip": f"Paket_Lengkap_Genie_{slug}.zip",
    }


def build_package(data: ProjectData, estimate: DocumentEstimate) -> BytesIO:
    names = export_filenames(data.meta.theme)
    zip_buffer = BytesIO()
    with zipfile.ZipFile(zip_buffer, 'w', zipfile.ZIP_DEFLATED) as zip_file:
        zip_file.writestr(names["docx"], docx_generator.generate_research_docx(data, estimate).read())
        zip_file.writestr(names["xlsx"], excel_generator.generate_project_excel(data, estimate).read())
        zip_file.writestr(names["pdf"], pdf_generator.generate_master_report(data, estimate).read())
    zip_buffer.seek(0)
    return zip_buffer


def export_project(
    data: ProjectData,
    fmt: str,
    config: Optional[EstimationConfig] = None,
) -> Tuple[BytesIO, str, str]:
    """
    Render the project in one export format.

    Returns:
        (buffer, filename, media type)

    Raises:
        ValueError: Unknown format
    """
    fmt = fmt.lower()
    if fmt not in MEDIA_TYPES:
        raise ValueError(f"Invalid format '{fmt}'. Use one of: {', '.join(MEDIA_TYPES)}")

    estimate = project_estimate(data, config)
    if fmt == "xlsx":
        buffer = excel_generator.generate_project_excel(data, estimate)
    elif fmt == "docx":
        buffer = docx_generator.generate_research_docx(data, estimate)
    elif fmt == "pdf":
        buffer = pdf_generator.generate_master_report(data, estimate)
    else:
        buffer = build_package(data, estimate)

    filename = export_filenames(data.meta.theme)[fmt]
    logger.info(f"Exported {filename}")
    return buffer, filename, MEDIA_TYPES[fmt]
