"""
Excel export service for project estimates
Generates the strict multi-sheet project workbook (UCP, man-month, RAB)
"""
from io import BytesIO
from typing import List, Sequence
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.worksheet.worksheet import Worksheet

from genie.estimation.complexity import ENVIRONMENTAL_FACTORS, TECHNICAL_FACTORS
from genie.estimation.formatting import RAB_HEADERS, summary_labels, to_rupiah
from genie.schemas.project import ProjectData
from genie.services.workspace_service import DocumentEstimate

README_SHEET = "BACA_SAYA_DULU"
UCP_SHEET = "7_Use_Case_Point"
MAN_MONTH_SHEET = "8_Man_Month"
COST_SHEET = "9_Cost_Estimation"

MONEY_FORMAT = '#,##0'
PERCENT_FORMAT = '0.0%'
DECIMAL_FORMAT = '0.00'
EFFORT_FORMAT = '0.000'


class ExcelGenerator:
    """Generate the strict project workbook from an engine estimate"""

    def __init__(self):
        self.header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        self.header_font = Font(bold=True, color="FFFFFF", size=11)
        self.title_font = Font(bold=True, size=16)
        self.subtitle_font = Font(bold=True, size=12)
        self.bold_font = Font(bold=True, size=10)
        self.warning_font = Font(bold=True, size=14, color="C00000")
        self.border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        self.thick_border = Border(
            left=Side(style='medium'),
            right=Side(style='medium'),
            top=Side(style='medium'),
            bottom=Side(style='medium')
        )
        self.total_fill = PatternFill(start_color="E0E0E0", end_color="E0E0E0", fill_type="solid")

    def generate_project_excel(self, data: ProjectData, estimate: DocumentEstimate) -> BytesIO:
        """Generate the workbook with the four strict sheets"""
        buffer = BytesIO()
        wb = Workbook()

        # Remove default sheet
        if 'Sheet' in wb.sheetnames:
            wb.remove(wb['Sheet'])

        self._create_readme_sheet(wb, data)
        self._create_ucp_sheet(wb, estimate)
        self._create_man_month_sheet(wb, estimate)
        self._create_cost_sheet(wb, estimate)

        wb.save(buffer)
        buffer.seek(0)
        return buffer

    def _write_header(self, ws: Worksheet, row: int, headers: Sequence[str]):
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
            cell.border = self.border

    def _write_row(self, ws: Worksheet, row: int, values: Sequence, formats: Sequence = ()):
        for col, value in enumerate(values, 1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.border = self.border
            if col - 1 < len(formats) and formats[col - 1]:
                cell.number_format = formats[col - 1]
                cell.alignment = Alignment(horizontal='right')

    def _create_readme_sheet(self, wb: Workbook, data: ProjectData):
        ws = wb.create_sheet(README_SHEET)
        lines = [
            "PERINGATAN KEPATUHAN TEMPLATE KETAT",
            "",
            "DOKUMEN INI DIBUAT OTOMATIS OLEH PROJECT GENIE.",
            "INSTRUKSI KRITIS:",
            "1. JANGAN MENGUBAH NAMA SHEET.",
            "2. JANGAN MENGGABUNGKAN SEL (MERGE) PADA KOLOM DATA.",
            "",
            f"Proyek: {data.meta.theme}",
            f"Unit: {data.meta.department or '-'}",
        ]
        for row, line in enumerate(lines, 1):
            ws.cell(row=row, column=1, value=line)
        ws['A1'].font = self.warning_font
        ws['A4'].font = self.bold_font
        ws.column_dimensions['A'].width = 70

    def _create_ucp_sheet(self, wb: Workbook, estimate: DocumentEstimate):
        ws = wb.create_sheet(UCP_SHEET)
        metrics = estimate.result.metrics
        config = estimate.config

        ws['A1'] = "7. Use Case Point Calculation"
        ws['A1'].font = self.title_font
        row = 3

        ws.cell(row=row, column=1, value="UNADJUSTED ACTOR WEIGHT (UAW)").font = self.subtitle_font
        row += 1
        self._write_header(ws, row, ["No", "Aktor", "Klasifikasi", "Weight"])
        row += 1
        for number, actor in enumerate(estimate.actors, 1):
            label = actor.classification.value if actor.classification else ""
            self._write_row(ws, row, [number, actor.name, label, float(actor.weight)],
                            [None, None, None, DECIMAL_FORMAT])
            row += 1
        row += 1

        ws.cell(row=row, column=1, value="UNADJUSTED USE CASE WEIGHT (UUCW)").font = self.subtitle_font
        row += 1
        self._write_header(ws, row, ["No", "Use Case", "Tipe", "Trans.", "Weight"])
        row += 1
        for number, use_case in enumerate(estimate.use_cases, 1):
            label = use_case.classification.value if use_case.classification else ""
            self._write_row(ws, row, [number, use_case.name, label, use_case.transaction_count,
                                      float(use_case.weight)],
                            [None, None, None, None, DECIMAL_FORMAT])
            row += 1
        row += 1

        row = self._write_factor_table(ws, row, "TECHNICAL COMPLEXITY FACTOR (TCF)", TECHNICAL_FACTORS)
        row = self._write_factor_table(ws, row, "ENVIRONMENTAL FACTOR (EF)", ENVIRONMENTAL_FACTORS)

        summary = [
            ("UAW", metrics.uaw),
            ("UUCW", metrics.uucw),
            ("UUCP (UUCW + UAW)", metrics.uucp),
            ("TCF", config.tcf),
            ("ECF", config.ecf),
            ("Total UCP", metrics.ucp),
        ]
        for label, value in summary:
            ws.cell(row=row, column=1, value=label).font = self.bold_font
            cell = ws.cell(row=row, column=3, value=float(value))
            cell.number_format = '0.0000'
            row += 1

        ws.column_dimensions['A'].width = 8
        ws.column_dimensions['B'].width = 45
        ws.column_dimensions['C'].width = 14
        ws.column_dimensions['D'].width = 10
        ws.column_dimensions['E'].width = 10

    def _write_factor_table(self, ws: Worksheet, row: int, title: str, factors: List) -> int:
        ws.cell(row=row, column=1, value=title).font = self.subtitle_font
        row += 1
        self._write_header(ws, row, ["Kode", "Factor", "Weight"])
        row += 1
        for code, name, weight in factors:
            self._write_row(ws, row, [code, name, float(weight)], [None, None, DECIMAL_FORMAT])
            row += 1
        return row + 1

    def _create_man_month_sheet(self, wb: Workbook, estimate: DocumentEstimate):
        ws = wb.create_sheet(MAN_MONTH_SHEET)
        metrics = estimate.result.metrics
        config = estimate.config

        ws['A1'] = "8. Man Month Estimation"
        ws['A1'].font = self.title_font
        self._write_header(ws, 3, ["UCP", "PHM", "Total Person-Hours", "Work Days", "Man Month (MM)"])
        self._write_row(
            ws, 4,
            [float(metrics.ucp), float(config.phm_multiplier), float(metrics.phm),
             float(metrics.work_days), float(metrics.man_months)],
            ['0.0000', '0', DECIMAL_FORMAT, DECIMAL_FORMAT, DECIMAL_FORMAT],
        )
        ws['A6'] = f"Jam kerja per hari: {config.hours_per_day}"
        ws['A7'] = f"Hari kerja per bulan: {config.days_per_month}"
        for col in 'ABCDE':
            ws.column_dimensions[col].width = 20

    def _create_cost_sheet(self, wb: Workbook, estimate: DocumentEstimate):
        ws = wb.create_sheet(COST_SHEET)
        result = estimate.result
        summary = result.summary

        ws['A1'] = "9. COST ESTIMATION (RAB)"
        ws['A1'].font = self.title_font
        header_row = 3
        self._write_header(ws, header_row, RAB_HEADERS)

        row = header_row + 1
        formats = [None, PERCENT_FORMAT, EFFORT_FORMAT, None, MONEY_FORMAT, MONEY_FORMAT]
        for line in result.rows:
            self._write_row(
                ws, row,
                [line.activity, float(line.percentage), float(line.effort_man_months), line.role,
                 float(line.rate_amount), float(to_rupiah(line.cost_amount))],
                formats,
            )
            row += 1

        labels = summary_labels(estimate.config)
        totals = [
            (labels[0], summary.total_effort_cost, result.metrics.man_months),
            (labels[1], summary.warranty, None),
            (labels[2], summary.subtotal, None),
            (labels[3], summary.tax, None),
            (labels[4], summary.grand_total, None),
        ]
        for label, amount, effort in totals:
            ws.cell(row=row, column=1, value=label).font = self.bold_font
            if effort is not None:
                effort_cell = ws.cell(row=row, column=3, value=float(effort))
                effort_cell.number_format = DECIMAL_FORMAT
            cell = ws.cell(row=row, column=6, value=float(to_rupiah(amount)))
            cell.number_format = MONEY_FORMAT
            cell.font = self.bold_font
            for col in range(1, 7):
                ws.cell(row=row, column=col).border = self.border
            row += 1

        # grand total
        for col in (1, 6):
            cell = ws.cell(row=row - 1, column=col)
            cell.border = self.thick_border
            cell.fill = self.total_fill

        widths = {'A': 32, 'B': 14, 'C': 14, 'D': 20, 'E': 16, 'F': 18}
        for col, width in widths.items():
            ws.column_dimensions[col].width = width
