"""
WORD REPORT GENERATOR
=====================
Builds the editable .docx patient summary report.

Layout (A4, 0.5" margins):
- Centered bold title with the reporting window
- Bordered 6-column summary table (header row + value row)
- Centered red warning line and bold disclaimer

Returns bytes; writing to disk is ReportStorage's job.
"""

from datetime import datetime
import io

from docx import Document
from docx.shared import Cm, Emu, Inches, Pt, RGBColor
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.oxml.ns import qn
from docx.oxml import OxmlElement

from app.core.logging_config import logger
from app.modules.reports.formatter import ATTENTION_COLOR, ReportContent, build_report_content
from app.schemas.report import StatisticsSummary


class ReportWordGenerator:
    """Word renderer for the patient summary report"""

    PAGE_WIDTH = Cm(21)
    PAGE_HEIGHT = Cm(29.7)
    PAGE_MARGIN = Inches(0.5)
    CELL_MARGIN_TWIPS = 72  # 0.05"

    TITLE_SIZE = Pt(14)
    BODY_SIZE = Pt(12)
    TEXT_COLOR = RGBColor(0, 0, 0)

    def render(self, stats: StatisticsSummary, date_from: datetime, date_to: datetime) -> bytes:
        """
        Render the report to .docx bytes.

        Args:
            stats: Aggregated statistics
            date_from: Start of the reporting window (title only)
            date_to: End of the reporting window (title only)

        Returns:
            Serialized .docx document
        """
        content = build_report_content(stats, date_from, date_to)
        document = self.build_document(content)

        buffer = io.BytesIO()
        document.save(buffer)
        data = buffer.getvalue()

        logger.info(f"[WordGenerator] Rendered report ({len(data)} bytes)")
        return data

    def build_document(self, content: ReportContent):
        document = Document()

        core_props = document.core_properties
        core_props.title = content.title
        core_props.subject = "Patient summary report"

        self._setup_page_layout(document)

        self._add_centered_paragraph(
            document, content.title, size=self.TITLE_SIZE, space_after=Pt(20)
        )
        self._add_summary_table(document, content)

        # Spacer between table and warning block
        spacer = document.add_paragraph()
        spacer.paragraph_format.space_after = Pt(25)

        self._add_centered_paragraph(
            document, content.warning, size=self.TITLE_SIZE, space_after=Pt(10),
            color=RGBColor.from_string(ATTENTION_COLOR)
        )
        self._add_centered_paragraph(
            document, content.disclaimer, size=self.BODY_SIZE, space_after=Pt(10)
        )

        return document

    def _setup_page_layout(self, document):
        """A4 page with equal half-inch margins"""
        section = document.sections[0]
        section.page_width = self.PAGE_WIDTH
        section.page_height = self.PAGE_HEIGHT
        section.top_margin = self.PAGE_MARGIN
        section.bottom_margin = self.PAGE_MARGIN
        section.left_margin = self.PAGE_MARGIN
        section.right_margin = self.PAGE_MARGIN

    def _add_centered_paragraph(self, document, text: str, size, space_after, color=None):
        paragraph = document.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.paragraph_format.space_after = space_after

        run = paragraph.add_run(text)
        run.bold = True
        run.font.size = size
        run.font.color.rgb = color or self.TEXT_COLOR
        return paragraph

    def _add_summary_table(self, document, content: ReportContent):
        """Header row of labels over one row of values, equal column widths"""
        columns = len(content.labels)
        table = document.add_table(rows=2, cols=columns)
        table.style = 'Table Grid'
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        table.autofit = False

        usable_width = self.PAGE_WIDTH - 2 * self.PAGE_MARGIN
        column_width = Emu(usable_width // columns)

        for row_idx, (texts, bold) in enumerate(((content.labels, True), (content.values, False))):
            row = table.rows[row_idx]
            for col_idx, text in enumerate(texts):
                cell = row.cells[col_idx]
                cell.width = column_width
                self._set_cell_margins(cell, self.CELL_MARGIN_TWIPS)

                paragraph = cell.paragraphs[0]
                paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
                paragraph.paragraph_format.space_before = Pt(0)
                paragraph.paragraph_format.space_after = Pt(0)

                run = paragraph.add_run(text)
                run.bold = bold
                run.font.size = self.BODY_SIZE
                run.font.color.rgb = self.TEXT_COLOR

        return table

    @staticmethod
    def _set_cell_margins(cell, twips: int):
        tc_pr = cell._tc.get_or_add_tcPr()
        tc_mar = OxmlElement('w:tcMar')
        for side in ('top', 'left', 'bottom', 'right'):
            node = OxmlElement(f'w:{side}')
            node.set(qn('w:w'), str(twips))
            node.set(qn('w:type'), 'dxa')
            tc_mar.append(node)
        tc_pr.append(tc_mar)


# Singleton instance
word_generator = ReportWordGenerator()
