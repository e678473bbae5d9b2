"""
XLSX, DOCX, PDF and ZIP exports render the same estimate as the workspace.
"""
import zipfile
from io import BytesIO

import pytest
from docx import Document
from openpyxl import load_workbook

from genie.estimation.config import load_estimation_config
from genie.schemas.workspace import TableType
from genie.services.demo_data import create_demo_project
from genie.services.excel_generator import COST_SHEET, MAN_MONTH_SHEET, README_SHEET, UCP_SHEET
from genie.services.package_exporter import MEDIA_TYPES, export_filenames, export_project, theme_slug
from genie.services.workspace_service import project_estimate


@pytest.fixture
def demo():
    return create_demo_project()


def _docx_text(buffer: BytesIO):
    document = Document(buffer)
    paragraphs = [p.text for p in document.paragraphs]
    cells = [[cell.text for cell in row.cells] for table in document.tables for row in table.rows]
    return paragraphs, cells


class TestFilenames:
    def test_slug(self):
        assert theme_slug("Modul  Imsama Baru ") == "Modul_Imsama_Baru"
        assert theme_slug("   ") == "Project"

    @pytest.mark.parametrize("theme,expected", [
        ("Sistem Izin – Daerah", "Sistem_Izin_Daerah"),
        ("Aplikasi “Bea” Cukai", "Aplikasi_Bea_Cukai"),
        ("Pelayanan Pajak Daérah", "Pelayanan_Pajak_Daerah"),
        ("Sistem/Izin: v2.0", "Sistem_Izin_v2.0"),
        ("海关系统", "Project"),
    ])
    def test_slug_is_ascii(self, theme, expected):
        slug = theme_slug(theme)
        assert slug == expected
        slug.encode("latin-1")

    def test_names(self):
        names = export_filenames("Aplikasi X")
        assert names == {
            "docx": "0_DOKUMEN_PENELITIAN_Aplikasi_X.docx",
            "xlsx": "4_File_Proyek_Aplikasi_X_Strict.xlsx",
            "pdf": "MASTER_REPORT_Aplikasi_X.pdf",
            "zip": "Paket_Lengkap_Genie_Aplikasi_X.zip",
        }

    def test_unknown_format(self, demo):
        with pytest.raises(ValueError, match="Invalid format"):
            export_project(demo, "csv")


class TestExcelExport:
    def test_sheets(self, demo):
        buffer, filename, media_type = export_project(demo, "xlsx")
        workbook = load_workbook(buffer)
        assert workbook.sheetnames == [README_SHEET, UCP_SHEET, MAN_MONTH_SHEET, COST_SHEET]
        assert filename.endswith("_Strict.xlsx")
        assert media_type == MEDIA_TYPES["xlsx"]

    def test_man_month_values(self, demo):
        buffer, _, _ = export_project(demo, "xlsx")
        sheet = load_workbook(buffer)[MAN_MONTH_SHEET]
        estimate = project_estimate(demo)
        assert sheet.cell(row=4, column=1).value == pytest.approx(float(estimate.result.metrics.ucp))
        assert sheet.cell(row=4, column=5).value == pytest.approx(4.71975)

    def test_cost_sheet_matches_engine(self, demo):
        buffer, _, _ = export_project(demo, "xlsx")
        sheet = load_workbook(buffer)[COST_SHEET]
        result = project_estimate(demo).result

        for offset, line in enumerate(result.rows):
            row = 4 + offset
            assert sheet.cell(row=row, column=1).value == line.activity
            assert sheet.cell(row=row, column=2).value == pytest.approx(float(line.percentage))
            assert sheet.cell(row=row, column=4).value == line.role
        assert sheet.cell(row=16, column=1).value == "Total Effort Cost"
        assert sheet.cell(row=16, column=3).value == pytest.approx(float(result.metrics.man_months))
        assert sheet.cell(row=20, column=1).value == "TOTAL BIAYA (RAB)"
        assert sheet.cell(row=20, column=6).value == round(float(result.summary.grand_total))

    def test_calibration_reaches_the_workbook(self, demo):
        config = load_estimation_config({"tax_rate": 0.12})
        buffer, _, _ = export_project(demo, "xlsx", config)
        sheet = load_workbook(buffer)[COST_SHEET]
        assert sheet.cell(row=19, column=1).value == "PPN (12%)"


class TestDocxExport:
    def test_headings_in_order(self, demo):
        buffer, _, _ = export_project(demo, "docx")
        document = Document(buffer)
        headings = [p.text for p in document.paragraphs if p.style.name == "Heading 1"]
        assert headings == [
            "1. Kajian Kebutuhan & Informasi Umum",
            "2. Estimasi Biaya (RAB) & KAK",
            "3. Detail Perhitungan UCP",
            "4. Kebutuhan Fungsional (BRD)",
            "5. Project Charter",
        ]
        assert document.paragraphs[0].text == "DOKUMEN PENELITIAN & KAK"

    def test_rab_table_matches_workspace(self, demo):
        buffer, _, _ = export_project(demo, "docx")
        _, cells = _docx_text(buffer)
        workspace_rows = demo.workspaces["doc-research"].tables(TableType.RAB)[0].rows
        assert workspace_rows[-1] in cells
        assert workspace_rows[0] in cells

    def test_use_cases_listed(self, demo):
        buffer, _, _ = export_project(demo, "docx")
        _, cells = _docx_text(buffer)
        assert ["1", "UC1 Penerbitan Nopen", "Complex", "9", "15"] in cells
        assert ["FR1", "Modul Pendaftaran/Sign Up", "Mandatory"] in cells


class TestPdfAndPackage:
    def test_pdf(self, demo):
        buffer, filename, media_type = export_project(demo, "pdf")
        assert buffer.read(5) == b"%PDF-"
        assert media_type == "application/pdf"
        assert filename.startswith("MASTER_REPORT_")

    def test_pdf_escapes_markup(self, demo):
        demo.strategic_analysis.executive_summary = "Biaya < 5 M & waktu > 6 bulan"
        buffer, _, _ = export_project(demo, "pdf")
        assert buffer.getvalue().startswith(b"%PDF-")

    def test_zip_contains_all_documents(self, demo):
        buffer, filename, _ = export_project(demo, "ZIP")
        names = export_filenames(demo.meta.theme)
        assert filename == names["zip"]
        with zipfile.ZipFile(buffer) as archive:
            assert sorted(archive.namelist()) == sorted([names["docx"], names["xlsx"], names["pdf"]])
            workbook = load_workbook(BytesIO(archive.read(names["xlsx"])))
            assert COST_SHEET in workbook.sheetnames
