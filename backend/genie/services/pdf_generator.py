from io import BytesIO
from xml.sax.saxutils import escape
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
import logging

from genie.estimation.formatting import RAB_HEADERS, format_idr, format_number, render_rab_rows
from genie.estimation.formatting import SUMMARY_ROW_COUNT
from genie.schemas.project import ProjectData
from genie.services.workspace_service import DocumentEstimate

logger = logging.getLogger(__name__)

SECTION_BLUE = colors.HexColor('#1F4E79')


class PDFGenerator:
    """Generate the master project report"""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom paragraph styles"""
        # Only add styles if they don't already exist
        if 'CustomTitle' not in self.styles.byName:
            self.styles.add(ParagraphStyle(
                name='CustomTitle',
                parent=self.styles['Heading1'],
                fontSize=22,
                textColor=colors.HexColor('#1a1a1a'),
                spaceAfter=12,
                alignment=TA_CENTER,
            ))

        if 'SectionHeading' not in self.styles.byName:
            self.styles.add(ParagraphStyle(
                name='SectionHeading',
                parent=self.styles['Heading2'],
                fontSize=13,
                textColor=colors.white,
                backColor=SECTION_BLUE,
                borderPadding=4,
                spaceAfter=12,
                spaceBefore=20,
            ))

        # Modify existing BodyText style instead of adding a new one
        if 'BodyText' in self.styles.byName:
            self.styles['BodyText'].fontSize = 10
            self.styles['BodyText'].textColor = colors.HexColor('#333333')
            self.styles['BodyText'].spaceAfter = 8
            self.styles['BodyText'].alignment = TA_JUSTIFY

    def _table_style(self, summary_rows: int = 0) -> TableStyle:
        commands = [
            # Header row
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#34495e')),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 6),
            ('TOPPADDING', (0, 0), (-1, 0), 6),
            # Data rows
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f8f9fa')]),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#dee2e6')),
        ]
        if summary_rows:
            commands.extend([
                ('FONTNAME', (0, -summary_rows), (-1, -1), 'Helvetica-Bold'),
                ('BACKGROUND', (0, -summary_rows), (-1, -2), colors.HexColor('#E7E6E6')),
                # Grand total
                ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor('#10B981')),
                ('TEXTCOLOR', (0, -1), (-1, -1), colors.whitesmoke),
            ])
        return TableStyle(commands)

    def generate_master_report(self, data: ProjectData, estimate: DocumentEstimate) -> BytesIO:
        """Generate the master report: title, executive summary, UCP metrics and RAB"""
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Master Report - {data.meta.theme}")
        story = []
        metrics = estimate.result.metrics
        config = estimate.config

        story.append(Paragraph("MASTER PROJECT REPORT", self.styles['CustomTitle']))
        story.append(Paragraph(escape(data.meta.theme), self.styles['Heading2']))
        story.append(Spacer(1, 0.2 * inch))

        story.append(Paragraph("1. EXECUTIVE SUMMARY", self.styles['SectionHeading']))
        story.append(Paragraph(escape(data.strategic_analysis.executive_summary or "-"), self.styles['BodyText']))
        for objective in data.strategic_analysis.business_objectives:
            story.append(Paragraph(f"&bull; {escape(objective)}", self.styles['BodyText']))

        story.append(Paragraph("2. USE CASE POINT", self.styles['SectionHeading']))
        metric_rows = [
            ["Metric", "Value"],
            ["UAW", format_number(metrics.uaw, 2)],
            ["UUCW", format_number(metrics.uucw, 2)],
            ["UUCP", format_number(metrics.uucp, 2)],
            ["TCF", format_number(config.tcf, 3)],
            ["ECF", format_number(config.ecf, 3)],
            ["UCP", format_number(metrics.ucp, 4)],
            ["Person-Hours (PHM)", format_number(metrics.phm, 2)],
            ["Work Days", format_number(metrics.work_days, 2)],
            ["Man Month", format_number(metrics.man_months, 2)],
        ]
        metric_table = Table(metric_rows, colWidths=[2.5 * inch, 2 * inch])
        metric_table.setStyle(self._table_style())
        story.append(metric_table)

        story.append(Paragraph("3. ESTIMASI BIAYA (RAB)", self.styles['SectionHeading']))
        rab_rows = [list(RAB_HEADERS)] + render_rab_rows(estimate.result, config)
        rab_table = Table(
            rab_rows,
            colWidths=[1.9 * inch, 0.7 * inch, 0.8 * inch, 1.2 * inch, 1.1 * inch, 1.2 * inch],
            repeatRows=1,
        )
        rab_table.setStyle(self._table_style(SUMMARY_ROW_COUNT))
        story.append(rab_table)
        story.append(Spacer(1, 0.2 * inch))
        story.append(Paragraph(
            f"<b>Total Biaya:</b> {format_idr(estimate.result.summary.grand_total)} "
            f"({format_idr(estimate.result.summary.grand_total, compact=True)})",
            self.styles['BodyText'],
        ))

        doc.build(story)
        buffer.seek(0)
        logger.info(f"Generated master report for {data.meta.theme}")
        return buffer
