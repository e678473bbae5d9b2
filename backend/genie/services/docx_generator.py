"""
DOCX export service
Generates the "Dokumen Penelitian & KAK" research document
"""
from io import BytesIO
from typing import List, Sequence

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_BREAK
from docx.shared import Pt, RGBColor

from genie.estimation.formatting import format_number, render_rab_rows
from genie.schemas.project import ProjectData
from genie.schemas.workspace import TableType
from genie.services.workspace_service import DocumentEstimate

BLUE_HEADER = RGBColor(0x1F, 0x4E, 0x79)
FONT_FAMILY = "Arial"
TABLE_STYLE = "Table Grid"


class DocxGenerator:
    """Generate the research document from project data and its engine estimate"""

    def generate_research_docx(self, data: ProjectData, estimate: DocumentEstimate) -> BytesIO:
        document = Document()
        self._apply_styles(document)

        title = document.add_paragraph()
        title.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = title.add_run("DOKUMEN PENELITIAN & KAK")
        run.bold = True
        run.font.size = Pt(14)
        subtitle = document.add_paragraph(f"Generated for: {data.meta.theme}")
        subtitle.alignment = WD_ALIGN_PARAGRAPH.CENTER

        self._general_info(document, data)
        self._rab_section(document, estimate)
        self._ucp_section(document, estimate)
        self._requirements_section(document, data)
        self._charter_section(document, data)

        buffer = BytesIO()
        document.save(buffer)
        buffer.seek(0)
        return buffer

    def _apply_styles(self, document):
        normal = document.styles["Normal"]
        normal.font.name = FONT_FAMILY
        normal.font.size = Pt(11)
        for name, size in (("Heading 1", 14), ("Heading 2", 12)):
            style = document.styles[name]
            style.font.name = FONT_FAMILY
            style.font.size = Pt(size)
            style.font.color.rgb = BLUE_HEADER

    def _add_table(self, document, headers: Sequence[str], rows: Sequence[Sequence[str]], bold_last: int = 0):
        table = document.add_table(rows=1, cols=len(headers))
        table.style = TABLE_STYLE
        for idx, header in enumerate(headers):
            cell = table.rows[0].cells[idx]
            cell.text = str(header)
            for run in cell.paragraphs[0].runs:
                run.bold = True
        for row_idx, row_data in enumerate(rows):
            cells = table.add_row().cells
            highlight = row_idx >= len(rows) - bold_last
            for col_idx in range(len(headers)):
                cells[col_idx].text = str(row_data[col_idx]) if col_idx < len(row_data) else ""
                if highlight:
                    for run in cells[col_idx].paragraphs[0].runs:
                        run.bold = True
        return table

    def _general_info(self, document, data: ProjectData):
        meta = data.meta
        analysis = data.strategic_analysis
        document.add_heading("1. Kajian Kebutuhan & Informasi Umum", level=1)
        document.add_paragraph(f"Nama Proyek: {meta.theme}")
        document.add_paragraph(f"Unit Pengampu: {meta.department or '-'}")
        document.add_paragraph(f"Unit Penanggung Jawab: {meta.unit_tik or '-'}")
        pic = meta.pic_name or "-"
        if meta.pic_contact:
            pic = f"{pic} ({meta.pic_contact})"
        document.add_paragraph(f"PIC: {pic}")

        document.add_heading("Latar Belakang & Masalah", level=2)
        background = document.add_paragraph(analysis.executive_summary or "-")
        background.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
        if analysis.problem_statement:
            document.add_paragraph(analysis.problem_statement)

        if analysis.business_objectives or analysis.business_value:
            document.add_heading("Target & Outcome", level=2)
            for objective in analysis.business_objectives:
                document.add_paragraph(objective, style="List Bullet")
            if analysis.business_value:
                document.add_paragraph(f"Business Value: {analysis.business_value}")

    def _rab_section(self, document, estimate: DocumentEstimate):
        document.add_heading("2. Estimasi Biaya (RAB) & KAK", level=1)
        document.add_paragraph(
            "Berikut adalah rincian estimasi biaya berdasarkan perhitungan Use Case Points (UCP)."
        )
        rows = render_rab_rows(estimate.result, estimate.config)
        self._add_table(document, ["Fase / Aktivitas", "%", "MM", "Role", "Rate", "Biaya"], rows, bold_last=5)
        document.add_paragraph().add_run().add_break(WD_BREAK.PAGE)

    def _ucp_section(self, document, estimate: DocumentEstimate):
        metrics = estimate.result.metrics
        config = estimate.config
        document.add_heading("3. Detail Perhitungan UCP", level=1)

        document.add_heading("A. Daftar Aktor (UAW)", level=2)
        actor_rows: List[List[str]] = [
            actor.to_row(number) for number, actor in enumerate(estimate.actors, 1)
        ]
        self._add_table(document, ["No", "Aktor", "Tipe", "UAW"], actor_rows)
        document.add_paragraph(f"Total UAW: {format_number(metrics.uaw, 2)}")

        document.add_heading("B. Daftar Use Case (UUCW)", level=2)
        use_case_rows = [
            use_case.to_row(number) for number, use_case in enumerate(estimate.use_cases, 1)
        ]
        self._add_table(document, ["No", "Use Case", "Tipe", "Trans.", "UUCW"], use_case_rows)
        document.add_paragraph(f"Total UUCW: {format_number(metrics.uucw, 2)}")

        document.add_heading("C. Total Complexity", level=2)
        document.add_paragraph(f"UUCP (UAW + UUCW) = {format_number(metrics.uucp, 2)}")
        document.add_paragraph(f"TCF (Technical Factor) = {format_number(config.tcf, 3)}")
        document.add_paragraph(f"EF (Environment Factor) = {format_number(config.ecf, 3)}")
        document.add_paragraph(f"Final UCP = {format_number(metrics.ucp, 2)}")
        document.add_paragraph(
            f"Man Month = {format_number(metrics.man_months, 2)} "
            f"({format_number(metrics.phm, 2)} jam / {config.hours_per_day} jam / {config.days_per_month} hari)"
        )

    def _requirements_section(self, document, data: ProjectData):
        document.add_heading("4. Kebutuhan Fungsional (BRD)", level=1)
        tables = list(data.tables.get("brd", []))
        if not tables:
            for workspace in data.workspaces.values():
                tables.extend(t for t in workspace.tables(TableType.GENERIC) if "Fungsional" in t.title)
        if not tables:
            document.add_paragraph("-")
            return
        for table in tables:
            self._add_table(document, table.headers, table.rows)

    def _charter_section(self, document, data: ProjectData):
        document.add_heading("5. Project Charter", level=1)
        document.add_heading("Timeline", level=2)
        rows = [[task.name, task.start, task.end, task.pic or "-", task.status] for task in data.charter]
        self._add_table(document, ["Milestone", "Start", "End", "PIC", "Status"], rows)
