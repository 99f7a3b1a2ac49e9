"""
Editable Word report engine.

Pagination is left to Word: the engine only marks table header rows to repeat
and writes live PAGE / NUMPAGES fields into the footer.
"""
import logging
from io import BytesIO
from typing import Optional, Sequence

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Mm, Pt, RGBColor

from config import get_institution_config
from models import LoadedImage, ReportAssets, ReportPayload
from shared import report_sections as sections
from shared.base_renderer import ReportRenderer
from utils.formatters import PLACEHOLDER, format_timestamp
from utils.docx_utils import (
    add_field,
    mark_header_row,
    remove_table_borders,
    set_cell_shading,
    set_paragraph_border,
)

logger = logging.getLogger(__name__)

NAVY = RGBColor(0x1A, 0x36, 0x5D)
GREY = RGBColor(0x71, 0x80, 0x96)
BODY = RGBColor(0x32, 0x32, 0x32)
LABEL = RGBColor(0x50, 0x50, 0x50)
WHITE = RGBColor(0xFF, 0xFF, 0xFF)
HEADER_FILL = '1A365D'
ALT_ROW_FILL = 'F5F7FC'

PAGE_WIDTH = Mm(210)
PAGE_HEIGHT = Mm(297)
SIDE_MARGIN = Inches(0.75)
CONTENT_WIDTH = PAGE_WIDTH - 2 * SIDE_MARGIN
PHOTO_COLUMNS = 3
PHOTO_WIDTH = Inches(2.1)
PHOTO_HEIGHT = Inches(1.6)
LOGO_WIDTH = Inches(0.9)
LOGO_HEIGHT = Inches(0.9)
SIGNATURE_WIDTH = Inches(1.8)
SIGNATURE_HEIGHT = Inches(0.7)


class _DocxLayout:
    """Document under construction for one render call."""

    def __init__(self, payload: ReportPayload, assets: ReportAssets):
        self.payload = payload
        self.assets = assets
        self.document = Document()
        self._setup_page()

    def _setup_page(self):
        section = self.document.sections[0]
        section.page_width = PAGE_WIDTH
        section.page_height = PAGE_HEIGHT
        section.top_margin = Inches(0.5)
        section.bottom_margin = Inches(0.5)
        section.left_margin = SIDE_MARGIN
        section.right_margin = SIDE_MARGIN

        header = section.header.paragraphs[0]
        header.alignment = WD_ALIGN_PARAGRAPH.RIGHT
        run = header.add_run(sections.running_title(self.payload))
        run.font.size = Pt(8)
        run.font.color.rgb = GREY

        footer = section.footer.paragraphs[0]
        footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
        for text, field in ((sections.footer_text() + "  |  Page ", 'PAGE'), (" of ", 'NUMPAGES')):
            run = footer.add_run(text)
            run.font.size = Pt(8)
            run.font.color.rgb = GREY
            add_field(footer, field, font_size=Pt(8), color=GREY)

        institution = get_institution_config()
        properties = self.document.core_properties
        properties.title = sections.running_title(self.payload)
        properties.author = institution['footer_name']
        properties.subject = institution['report_title']

    # ---------- primitives ----------

    def _picture(self, paragraph, image: Optional[LoadedImage], max_width, max_height) -> bool:
        if image is None:
            return False
        width_mm, height_mm = image.fit(max_width.mm, max_height.mm)
        try:
            paragraph.add_run().add_picture(image.stream(), width=Mm(width_mm), height=Mm(height_mm))
        except Exception as exc:
            logger.warning("Skipping image that could not be embedded: %s", exc)
            return False
        return True

    def _run(self, paragraph, text: str, size: float = 11, bold: bool = False,
             italic: bool = False, color: Optional[RGBColor] = None):
        run = paragraph.add_run(text)
        run.font.size = Pt(size)
        run.bold = bold
        run.italic = italic
        if color is not None:
            run.font.color.rgb = color
        return run

    def _cell_text(self, cell, text: str, size: float = 10, bold: bool = False,
                   color: Optional[RGBColor] = None, align=None):
        paragraph = cell.paragraphs[0]
        if align is not None:
            paragraph.alignment = align
        self._run(paragraph, text, size, bold=bold, color=color)

    # ---------- first page ----------

    def _logo_cell(self, cell, image: Optional[LoadedImage], label: str):
        paragraph = cell.paragraphs[0]
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        if not self._picture(paragraph, image, LOGO_WIDTH, LOGO_HEIGHT):
            self._run(paragraph, label, 9, bold=True, color=NAVY)

    def banner(self):
        table = self.document.add_table(rows=1, cols=3)
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        remove_table_borders(table)
        left, middle, right = table.rows[0].cells
        left.width = Inches(1.2)
        middle.width = CONTENT_WIDTH - Inches(2.4)
        right.width = Inches(1.2)
        self._logo_cell(left, self.assets.college_logo, sections.LOGO_PLACEHOLDERS[0])
        self._logo_cell(right, self.assets.department_logo, sections.LOGO_PLACEHOLDERS[1])

        styles = [(16, True), (11, False), (14, True), (12, True), (10, False), (10, False)]
        for index, ((size, bold), line) in enumerate(zip(styles, sections.banner_lines(self.payload))):
            paragraph = middle.paragraphs[0] if index == 0 else middle.add_paragraph()
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            self._run(paragraph, line, size, bold=bold, color=NAVY)

        rule = self.document.add_paragraph()
        set_paragraph_border(rule, 'bottom', '3B82F6', 12)
        coordinator = self.document.add_paragraph()
        coordinator.alignment = WD_ALIGN_PARAGRAPH.CENTER
        self._run(coordinator, sections.coordinator_line(self.payload), 9, color=LABEL)

    # ---------- blocks ----------

    def section_title(self, section: sections.Section):
        paragraph = self.document.add_paragraph()
        paragraph.paragraph_format.space_before = Pt(12)
        paragraph.paragraph_format.keep_with_next = True
        self._run(paragraph, section.heading, 13, bold=True, color=NAVY)
        set_paragraph_border(paragraph, 'bottom')

    def paragraph(self, text: str, size: float = 11, italic: bool = False, color=BODY):
        paragraph = self.document.add_paragraph()
        self._run(paragraph, text or PLACEHOLDER, size, italic=italic, color=color)
        return paragraph

    def field(self, label: str, value: str):
        paragraph = self.document.add_paragraph()
        paragraph.paragraph_format.space_after = Pt(2)
        self._run(paragraph, f"{label}: ", 11, bold=True, color=LABEL)
        self._run(paragraph, value or PLACEHOLDER, 11, color=BODY)

    def highlights(self, items: Sequence[str]):
        heading = self.document.add_paragraph()
        self._run(heading, sections.HIGHLIGHTS_TITLE, 11, bold=True, color=NAVY)
        for item in items:
            bullet = self.document.add_paragraph(style='List Bullet')
            self._run(bullet, item, 11, color=BODY)

    def subheading(self, text: str):
        paragraph = self.document.add_paragraph()
        paragraph.paragraph_format.keep_with_next = True
        self._run(paragraph, text, 11, bold=True, color=NAVY)

    def table(self, header: Sequence[str], rows: Sequence[Sequence[str]], widths: Sequence,
              size: float = 10, bold_first_column: bool = False):
        table = self.document.add_table(rows=1, cols=len(header))
        table.style = 'Table Grid'
        header_row = table.rows[0]
        mark_header_row(header_row)
        for cell, text, width in zip(header_row.cells, header, widths):
            cell.width = width
            set_cell_shading(cell, HEADER_FILL)
            self._cell_text(cell, text, size, bold=True, color=WHITE)
        for index, row in enumerate(rows):
            cells = table.add_row().cells
            for column, (cell, text, width) in enumerate(zip(cells, row, widths)):
                cell.width = width
                if index % 2 == 1:
                    set_cell_shading(cell, ALT_ROW_FILL)
                self._cell_text(cell, text, size, bold=bold_first_column and column == 0, color=BODY)
        self.document.add_paragraph()
        return table

    # ---------- photos and signatures ----------

    def photo_grid(self, photos: Sequence[LoadedImage]):
        table = self.document.add_table(rows=0, cols=PHOTO_COLUMNS)
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        remove_table_borders(table)
        cells = []
        for photo in photos:
            if not cells:
                cells = list(table.add_row().cells)
            cell = cells[0]
            paragraph = cell.paragraphs[0]
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            if self._picture(paragraph, photo, PHOTO_WIDTH, PHOTO_HEIGHT):
                cells.pop(0)
        self.document.add_paragraph()

    def approval_block(self):
        title = self.document.add_paragraph()
        title.alignment = WD_ALIGN_PARAGRAPH.CENTER
        title.paragraph_format.space_before = Pt(18)
        set_paragraph_border(title, 'top')
        self._run(title, sections.APPROVAL_TITLE, 12, bold=True, color=NAVY)

        table = self.document.add_table(rows=4, cols=2)
        remove_table_borders(table)
        names = sections.signature_names(self.payload)
        signatures = (self.assets.coordinator_signature, self.assets.approver_signature)
        captions = (sections.COORDINATOR_CAPTION, sections.APPROVER_CAPTION)
        for column in range(2):
            self._picture(table.cell(0, column).paragraphs[0], signatures[column],
                          SIGNATURE_WIDTH, SIGNATURE_HEIGHT)
            self._cell_text(table.cell(1, column), "_" * 28, 10, color=GREY)
            self._cell_text(table.cell(2, column), names[column], 10, bold=True, color=BODY)
            self._cell_text(table.cell(3, column), captions[column], 9, color=GREY)

        generated = self.document.add_paragraph()
        generated.alignment = WD_ALIGN_PARAGRAPH.CENTER
        generated.paragraph_format.space_before = Pt(12)
        self._run(generated, f"Report generated: {format_timestamp(self.payload.generated_at)}", 8,
                  italic=True, color=GREY)

    def finish(self) -> bytes:
        buffer = BytesIO()
        self.document.save(buffer)
        return buffer.getvalue()


class DocxReportRenderer(ReportRenderer):
    """Render a report payload as an editable Word document"""

    format = 'docx'
    extension = 'docx'
    media_type = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'

    def render(self, payload: ReportPayload, assets: ReportAssets) -> bytes:
        layout = _DocxLayout(payload, assets)
        layout.banner()
        for section in sections.visible_sections(payload, assets):
            layout.section_title(section)
            getattr(self, f"_render_{section.key}")(layout, payload, assets)
        layout.approval_block()
        return layout.finish()

    def _render_introduction(self, layout: _DocxLayout, payload: ReportPayload, assets: ReportAssets):
        layout.paragraph(payload.fields.introduction)

    def _render_overview(self, layout: _DocxLayout, payload: ReportPayload, assets: ReportAssets):
        for label, value in sections.overview_fields(payload):
            layout.field(label, value)

    def _render_speaker(self, layout: _DocxLayout, payload: ReportPayload, assets: ReportAssets):
        for label, value in sections.speaker_fields(payload):
            layout.field(label, value)
        bio = sections.speaker_bio(payload)
        if bio:
            layout.paragraph(bio, 10, italic=True, color=LABEL)
        for label, value in sections.speaker_feedback_fields(payload):
            layout.field(label, value)

    def _render_description(self, layout: _DocxLayout, payload: ReportPayload, assets: ReportAssets):
        layout.paragraph(payload.fields.event_summary)
        items = sections.highlight_items(payload)
        if items:
            layout.highlights(items)

    def _render_participation(self, layout: _DocxLayout, payload: ReportPayload, assets: ReportAssets):
        layout.table(
            sections.PARTICIPATION_HEADER,
            sections.participation_rows(payload),
            [Inches(2.6), Inches(1.4)],
            bold_first_column=True,
        )
        if payload.attendee_count > 0:
            layout.subheading(sections.ATTENDEE_LIST_TITLE)
            weights = [0.5, 1.8, 2.4, 0.8, 1.3, 1.6]
            total = sum(weights)
            layout.table(
                sections.ATTENDEE_HEADER,
                sections.attendee_rows(payload),
                [int(CONTENT_WIDTH * weight / total) for weight in weights],
                size=9,
            )

    def _render_outcomes(self, layout: _DocxLayout, payload: ReportPayload, assets: ReportAssets):
        layout.paragraph(payload.fields.outcomes)

    def _render_feedback(self, layout: _DocxLayout, payload: ReportPayload, assets: ReportAssets):
        layout.table(
            sections.FEEDBACK_HEADER,
            sections.feedback_rows(payload, star_glyphs=True),
            [Inches(2.2), CONTENT_WIDTH - Inches(2.2)],
            bold_first_column=True,
        )

    def _render_photos(self, layout: _DocxLayout, payload: ReportPayload, assets: ReportAssets):
        layout.photo_grid(assets.photos)

    def _render_conclusion(self, layout: _DocxLayout, payload: ReportPayload, assets: ReportAssets):
        layout.paragraph(payload.fields.conclusion)
