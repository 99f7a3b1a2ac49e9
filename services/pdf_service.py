"""
Paginated PDF report engine.

Content is laid out top-down with a single cursor ``y`` measured from the top
edge of the page. Before every block the engine checks whether the block fits
above the bottom limit and starts a new page when it does not. Footers, page
numbers and the continuation strip are drawn in a final pass, once the page
count is known.
"""
import logging
from io import BytesIO
from typing import Callable, List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Table, TableStyle

from config import get_institution_config
from models import LoadedImage, ReportAssets, ReportPayload
from shared import report_sections as sections
from shared.base_renderer import ReportRenderer
from utils.formatters import FILLED_STAR, EMPTY_STAR, PLACEHOLDER
from utils.pdf_utils import (
    BOLD_FONT_NAME,
    DEFAULT_FONT_NAME,
    ITALIC_FONT_NAME,
    hex_to_color,
    register_unicode_font,
    supports_glyphs,
    text_width,
    wrap_text,
)

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 20 * mm
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
BANNER_HEIGHT = 72 * mm
ACCENT_HEIGHT = 2 * mm
CONTINUATION_TOP = 22 * mm
BOTTOM_LIMIT = PAGE_HEIGHT - 30 * mm
STRIP_HEIGHT = 12 * mm

LOGO_TOP = 8 * mm
LOGO_HEIGHT = 22 * mm
LOGO_MAX_WIDTH = 28 * mm
PLACEHOLDER_SIZE = 22 * mm
LOGO_BAND_BOTTOM = LOGO_TOP + LOGO_HEIGHT + 2 * mm

PHOTO_COLUMNS = 3
PHOTO_GAP = 5 * mm
PHOTO_CELL = (CONTENT_WIDTH - 2 * PHOTO_GAP) / PHOTO_COLUMNS
SIGNATURE_HEIGHT = 18 * mm
SIGNATURE_GAP = 20 * mm

TABLE_PADDING = 3 * mm
# Wrapped lines per table row before the cell continues in the next row
ROW_LINE_LIMIT = 30

NAVY = hex_to_color('#1A365D')
ACCENT = hex_to_color('#3B82F6')
RULE = hex_to_color('#C8D2E6')
PLACEHOLDER_FILL = hex_to_color('#C8D2E6')
ALT_ROW = hex_to_color('#F5F7FC')
BODY_TEXT = hex_to_color('#323232')
LABEL_TEXT = hex_to_color('#505050')
MUTED_TEXT = hex_to_color('#646464')
SIGN_LINE = hex_to_color('#646464')

# Characters outside Latin-1 that the standard fonts still encode
_STANDARD_EXTRAS = set("—–‘’“”•…€")

PageDecorator = Callable[[canvas.Canvas, int, int], None]


class ReportCanvas(canvas.Canvas):
    """Canvas that holds back finished pages so each can be decorated once
    the total page count is known."""

    def __init__(self, *args, decorate: Optional[PageDecorator] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []
        self._decorate = decorate

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            if self._decorate is not None:
                self._decorate(self, self.getPageNumber(), total)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)


class _PdfLayout:
    """Mutable layout state for a single render call."""

    def __init__(self, payload: ReportPayload, assets: ReportAssets, canvas_class, unicode_font: Optional[str]):
        self.payload = payload
        self.assets = assets
        self.unicode_font = unicode_font
        self.star_glyphs = supports_glyphs(unicode_font, FILLED_STAR + EMPTY_STAR)
        self.buffer = BytesIO()
        self.canvas = canvas_class(
            self.buffer,
            pagesize=A4,
            invariant=1,
            decorate=self._decorate_page,
        )
        self.y = 0.0

    # ---------- primitives ----------

    def _font_for(self, text: str, font: str) -> str:
        if self.unicode_font and any(ord(ch) > 0xFF and ch not in _STANDARD_EXTRAS for ch in text):
            return self.unicode_font
        return font

    def _text(self, x: float, y: float, text: str, font: str = DEFAULT_FONT_NAME,
              size: float = 10, color=BODY_TEXT, align: str = 'left'):
        c = self.canvas
        c.setFont(self._font_for(text, font), size)
        c.setFillColor(color)
        baseline = PAGE_HEIGHT - y
        if align == 'center':
            c.drawCentredString(x, baseline, text)
        elif align == 'right':
            c.drawRightString(x, baseline, text)
        else:
            c.drawString(x, baseline, text)

    def _rect(self, x: float, y: float, width: float, height: float, fill):
        self.canvas.setFillColor(fill)
        self.canvas.rect(x, PAGE_HEIGHT - y - height, width, height, stroke=0, fill=1)

    def _line(self, x1: float, y1: float, x2: float, y2: float, color, width: float):
        self.canvas.setStrokeColor(color)
        self.canvas.setLineWidth(width)
        self.canvas.line(x1, PAGE_HEIGHT - y1, x2, PAGE_HEIGHT - y2)

    def _image(self, image: LoadedImage, x: float, y: float, width: float, height: float) -> bool:
        try:
            self.canvas.drawImage(
                ImageReader(image.stream()), x, PAGE_HEIGHT - y - height,
                width=width, height=height, mask='auto',
            )
        except Exception as exc:
            logger.warning("Skipping image that could not be drawn: %s", exc)
            return False
        return True

    def _fit_size(self, text: str, font: str, size: float, max_width: float, minimum: float = 6) -> float:
        while size > minimum and text_width(text, self._font_for(text, font), size) > max_width:
            size -= 0.5
        return size

    def _new_page(self):
        self.canvas.showPage()
        self.y = CONTINUATION_TOP

    def _ensure_space(self, needed: float):
        if self.y + needed > BOTTOM_LIMIT:
            self._new_page()

    def _fits_on_fresh_page(self, needed: float) -> bool:
        return CONTINUATION_TOP + needed <= BOTTOM_LIMIT

    # ---------- first page ----------

    def _draw_logo_slot(self, image: Optional[LoadedImage], label: str, right: bool):
        if image is not None:
            width, height = image.fit(LOGO_MAX_WIDTH, LOGO_HEIGHT)
            x = PAGE_WIDTH - MARGIN - width if right else MARGIN
            if self._image(image, x, LOGO_TOP, width, height):
                return
        x = PAGE_WIDTH - MARGIN - PLACEHOLDER_SIZE if right else MARGIN
        self.canvas.setFillColor(PLACEHOLDER_FILL)
        self.canvas.roundRect(
            x, PAGE_HEIGHT - LOGO_TOP - PLACEHOLDER_SIZE, PLACEHOLDER_SIZE, PLACEHOLDER_SIZE,
            2 * mm, stroke=0, fill=1,
        )
        self._text(x + PLACEHOLDER_SIZE / 2, 21 * mm, label, BOLD_FONT_NAME, 5, NAVY, 'center')

    def draw_banner(self):
        self._rect(0, 0, PAGE_WIDTH, BANNER_HEIGHT, NAVY)
        self._draw_logo_slot(self.assets.college_logo, sections.LOGO_PLACEHOLDERS[0], right=False)
        self._draw_logo_slot(self.assets.department_logo, sections.LOGO_PLACEHOLDERS[1], right=True)

        beside_logos = CONTENT_WIDTH - 2 * (LOGO_MAX_WIDTH + 2 * mm)
        styles = [
            (18, BOLD_FONT_NAME, 15),
            (27, DEFAULT_FONT_NAME, 10),
            (39, BOLD_FONT_NAME, 13),
            (49, DEFAULT_FONT_NAME, 10),
            (56, DEFAULT_FONT_NAME, 9),
            (63, DEFAULT_FONT_NAME, 9),
        ]
        for (top, font, size), line in zip(styles, sections.banner_lines(self.payload)):
            limit = beside_logos if top * mm < LOGO_BAND_BOTTOM else CONTENT_WIDTH
            size = self._fit_size(line, font, size, limit)
            self._text(PAGE_WIDTH / 2, top * mm, line, font, size, colors.white, 'center')

        self._rect(0, BANNER_HEIGHT, PAGE_WIDTH, ACCENT_HEIGHT, ACCENT)
        self.y = BANNER_HEIGHT + 14 * mm
        line = sections.coordinator_line(self.payload)
        size = self._fit_size(line, DEFAULT_FONT_NAME, 9, CONTENT_WIDTH)
        self._text(PAGE_WIDTH / 2, self.y, line, DEFAULT_FONT_NAME, size, LABEL_TEXT, 'center')
        self.y += 14 * mm

    # ---------- blocks ----------

    def section_title(self, section: sections.Section):
        self._ensure_space(18 * mm)
        self._line(MARGIN, self.y, PAGE_WIDTH - MARGIN, self.y, RULE, 0.3 * mm)
        self.y += 7 * mm
        self._text(MARGIN, self.y, section.heading, BOLD_FONT_NAME, 12, NAVY)
        self.y += 8 * mm

    def _lines(self, lines: Sequence[str], x: float, step: float, font: str, size: float, color, after: float):
        block = len(lines) * step + 4 * mm
        if self._fits_on_fresh_page(block):
            self._ensure_space(block)
            for index, line in enumerate(lines):
                self._text(x, self.y + index * step, line, font, size, color)
            self.y += len(lines) * step
        else:
            # Taller than a page: flow line by line
            for line in lines:
                self._ensure_space(step)
                self._text(x, self.y, line, font, size, color)
                self.y += step
        self.y += after

    def paragraph(self, text: str):
        lines = wrap_text(text or PLACEHOLDER, self._font_for(text, DEFAULT_FONT_NAME), 10, CONTENT_WIDTH)
        self._lines(lines, MARGIN, 5 * mm, DEFAULT_FONT_NAME, 10, BODY_TEXT, 6 * mm)

    def italic_note(self, text: str):
        lines = wrap_text(text, self._font_for(text, ITALIC_FONT_NAME), 9, CONTENT_WIDTH)
        self._lines(lines, MARGIN, 4.5 * mm, ITALIC_FONT_NAME, 9, LABEL_TEXT, 4 * mm)

    def field(self, label: str, value: str):
        label_text = f"{label}: "
        label_width = text_width(label_text, BOLD_FONT_NAME, 9)
        value = value or PLACEHOLDER
        value_font = self._font_for(value, DEFAULT_FONT_NAME)
        lines = wrap_text(value, value_font, 9, CONTENT_WIDTH - label_width)
        self._ensure_space(max(10 * mm, len(lines) * 4.5 * mm + 4 * mm))
        self._text(MARGIN, self.y, label_text, BOLD_FONT_NAME, 9, LABEL_TEXT)
        for index, line in enumerate(lines):
            self._text(MARGIN + label_width, self.y + index * 4.5 * mm, line, DEFAULT_FONT_NAME, 9, BODY_TEXT)
        self.y += 6 * mm + (len(lines) - 1) * 4.5 * mm

    def highlights(self, items: List[str]):
        self._ensure_space(8 * mm)
        self._text(MARGIN, self.y, sections.HIGHLIGHTS_TITLE, BOLD_FONT_NAME, 10, NAVY)
        self.y += 6 * mm
        for item in items:
            lines = wrap_text(item, self._font_for(item, DEFAULT_FONT_NAME), 9, CONTENT_WIDTH - 8 * mm)
            for index, line in enumerate(lines):
                self._ensure_space(6 * mm)
                prefix = "  •  " if index == 0 else ""
                x = MARGIN if index == 0 else MARGIN + 8 * mm
                self._text(x, self.y, prefix + line, DEFAULT_FONT_NAME, 9, BODY_TEXT)
                self.y += 5.5 * mm
        self.y += 4 * mm

    def subheading(self, text: str):
        self._ensure_space(20 * mm)
        self._text(MARGIN, self.y, text, BOLD_FONT_NAME, 10, NAVY)
        self.y += 6 * mm

    # ---------- tables ----------

    def _cell_lines(self, text: str, width: float, font: str, size: float):
        cell_font = self._font_for(text, font)
        return wrap_text(text, cell_font, size, width - 2 * TABLE_PADDING), cell_font

    def _build_table(self, header: Sequence[str], rows: Sequence[Sequence[str]], widths: Sequence[float],
                     size: float, bold_first_column: bool, aligns: Sequence[str]) -> Table:
        """Wrap every cell into lines and build the styled table.

        A row whose wrapped text runs past ROW_LINE_LIMIT lines continues in
        extra rows on the same band, so no single row is taller than a page.
        """
        style = [
            ('FONTNAME', (0, 0), (-1, 0), BOLD_FONT_NAME),
            ('FONTNAME', (0, 1), (-1, -1), DEFAULT_FONT_NAME),
            ('FONTSIZE', (0, 0), (-1, -1), size),
            ('LEADING', (0, 0), (-1, -1), size * 1.2),
            ('BACKGROUND', (0, 0), (-1, 0), NAVY),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('TEXTCOLOR', (0, 1), (-1, -1), BODY_TEXT),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('LEFTPADDING', (0, 0), (-1, -1), TABLE_PADDING),
            ('RIGHTPADDING', (0, 0), (-1, -1), TABLE_PADDING),
            ('TOPPADDING', (0, 0), (-1, -1), TABLE_PADDING),
            ('BOTTOMPADDING', (0, 0), (-1, -1), TABLE_PADDING),
            ('LINEBELOW', (0, 1), (-1, -1), 0.25, RULE),
        ]
        if bold_first_column:
            style.append(('FONTNAME', (0, 1), (0, -1), BOLD_FONT_NAME))
        for column, align in enumerate(aligns):
            style.append(('ALIGN', (column, 0), (column, -1), align.upper()))

        data = [[]]
        for column, (text, width) in enumerate(zip(header, widths)):
            lines, font = self._cell_lines(text, width, BOLD_FONT_NAME, size)
            data[0].append('\n'.join(lines))
            if font != BOLD_FONT_NAME:
                style.append(('FONTNAME', (column, 0), (column, 0), font))

        for index, row in enumerate(rows):
            cells = []
            for column, (text, width) in enumerate(zip(row, widths)):
                base = BOLD_FONT_NAME if bold_first_column and column == 0 else DEFAULT_FONT_NAME
                lines, font = self._cell_lines(text, width, base, size)
                cells.append((column, lines, font, base))
            depth = max(len(lines) for _, lines, _, _ in cells)
            for start in range(0, depth, ROW_LINE_LIMIT):
                row_index = len(data)
                data.append(['\n'.join(lines[start:start + ROW_LINE_LIMIT]) for _, lines, _, _ in cells])
                if index % 2 == 1:
                    style.append(('BACKGROUND', (0, row_index), (-1, row_index), ALT_ROW))
                for column, _, font, base in cells:
                    if font != base:
                        style.append(('FONTNAME', (column, row_index), (column, row_index), font))

        table = Table(data, colWidths=list(widths), repeatRows=1)
        table.setStyle(TableStyle(style))
        return table

    def _place(self, flowable, height: float):
        flowable.drawOn(self.canvas, MARGIN, PAGE_HEIGHT - self.y - height)
        self.y += height

    def table(self, header: Sequence[str], rows: Sequence[Sequence[str]], widths: Sequence[float],
              size: float = 9, bold_first_column: bool = False, aligns: Optional[Sequence[str]] = None):
        """Place a table at the cursor, splitting it at page ends with the header row repeated."""
        aligns = list(aligns or ['left'] * len(widths))
        pending = self._build_table(header, rows, widths, size, bold_first_column, aligns)
        while True:
            available = BOTTOM_LIMIT - self.y
            _, height = pending.wrapOn(self.canvas, CONTENT_WIDTH, available)
            if height <= available:
                self._place(pending, height)
                break
            parts = pending.split(CONTENT_WIDTH, available)
            if len(parts) < 2:
                if self.y <= CONTINUATION_TOP:
                    # Nothing left to split on a fresh page
                    self._place(pending, height)
                    break
                self._new_page()
                continue
            head, pending = parts[0], parts[1]
            _, head_height = head.wrapOn(self.canvas, CONTENT_WIDTH, available)
            self._place(head, head_height)
            self._new_page()
        self.y += 10 * mm

    # ---------- photos and signatures ----------

    def photo_grid(self, photos: Sequence[LoadedImage]):
        column = 0
        for photo in photos:
            if column == 0:
                self._ensure_space(PHOTO_CELL + 10 * mm)
            width, height = photo.fit(PHOTO_CELL, PHOTO_CELL)
            x = MARGIN + column * (PHOTO_CELL + PHOTO_GAP)
            if not self._image(photo, x, self.y, width, height):
                continue
            column += 1
            if column >= PHOTO_COLUMNS:
                column = 0
                self.y += PHOTO_CELL + PHOTO_GAP
        if column > 0:
            self.y += PHOTO_CELL + PHOTO_GAP
        self.y += 4 * mm

    def approval_block(self):
        self._ensure_space(80 * mm)
        self.y += 8 * mm
        self._line(MARGIN, self.y, PAGE_WIDTH - MARGIN, self.y, RULE, 0.3 * mm)
        self.y += 12 * mm
        self._text(PAGE_WIDTH / 2, self.y, sections.APPROVAL_TITLE, BOLD_FONT_NAME, 11, NAVY, 'center')
        self.y += 12 * mm

        column_width = (CONTENT_WIDTH - SIGNATURE_GAP) / 2
        right_x = MARGIN + column_width + SIGNATURE_GAP
        for image, x in ((self.assets.coordinator_signature, MARGIN),
                         (self.assets.approver_signature, right_x)):
            if image is not None:
                width, height = image.fit(column_width, SIGNATURE_HEIGHT)
                self._image(image, x, self.y, width, height)
        self.y += SIGNATURE_HEIGHT + 4 * mm

        self._line(MARGIN, self.y, MARGIN + column_width, self.y, SIGN_LINE, 0.5 * mm)
        self._line(right_x, self.y, PAGE_WIDTH - MARGIN, self.y, SIGN_LINE, 0.5 * mm)
        self.y += 5 * mm
        coordinator, approver = sections.signature_names(self.payload)
        self._text(MARGIN, self.y, coordinator, BOLD_FONT_NAME, 9, BODY_TEXT)
        self._text(right_x, self.y, approver, BOLD_FONT_NAME, 9, BODY_TEXT)
        self.y += 4 * mm
        self._text(MARGIN, self.y, sections.COORDINATOR_CAPTION, DEFAULT_FONT_NAME, 9, MUTED_TEXT)
        self._text(right_x, self.y, sections.APPROVER_CAPTION, DEFAULT_FONT_NAME, 9, MUTED_TEXT)

    # ---------- final pass ----------

    def _decorate_page(self, c: canvas.Canvas, page: int, total: int):
        c.saveState()
        self._line(MARGIN, PAGE_HEIGHT - 16 * mm, PAGE_WIDTH - MARGIN, PAGE_HEIGHT - 16 * mm, NAVY, 0.5 * mm)
        footer_y = PAGE_HEIGHT - 11 * mm
        self._text(MARGIN, footer_y, sections.footer_text(), DEFAULT_FONT_NAME, 7, MUTED_TEXT)
        self._text(PAGE_WIDTH / 2, footer_y, sections.generated_line(self.payload), DEFAULT_FONT_NAME, 7,
                   MUTED_TEXT, 'center')
        self._text(PAGE_WIDTH - MARGIN, footer_y, f"Page {page} of {total}", DEFAULT_FONT_NAME, 7,
                   MUTED_TEXT, 'right')
        if page > 1:
            self._rect(0, 0, PAGE_WIDTH, STRIP_HEIGHT, NAVY)
            title = sections.running_title(self.payload)
            size = self._fit_size(title, BOLD_FONT_NAME, 8, CONTENT_WIDTH)
            self._text(PAGE_WIDTH / 2, 8 * mm, title, BOLD_FONT_NAME, size, colors.white, 'center')
        c.restoreState()

    def finish(self) -> bytes:
        institution = get_institution_config()
        self.canvas.setTitle(sections.running_title(self.payload))
        self.canvas.setAuthor(institution['footer_name'])
        self.canvas.setSubject(institution['report_title'])
        self.canvas.showPage()
        self.canvas.save()
        return self.buffer.getvalue()


class PdfReportRenderer(ReportRenderer):
    """Render a report payload as a paginated A4 PDF"""

    format = 'pdf'
    extension = 'pdf'
    media_type = 'application/pdf'

    def __init__(self, canvas_class=ReportCanvas):
        self.canvas_class = canvas_class

    def render(self, payload: ReportPayload, assets: ReportAssets) -> bytes:
        layout = _PdfLayout(payload, assets, self.canvas_class, register_unicode_font())
        layout.draw_banner()
        for section in sections.visible_sections(payload, assets):
            layout.section_title(section)
            getattr(self, f"_render_{section.key}")(layout, payload, assets)
        layout.approval_block()
        return layout.finish()

    def _render_introduction(self, layout: _PdfLayout, payload: ReportPayload, assets: ReportAssets):
        layout.paragraph(payload.fields.introduction)

    def _render_overview(self, layout: _PdfLayout, payload: ReportPayload, assets: ReportAssets):
        for label, value in sections.overview_fields(payload):
            layout.field(label, value)
        layout.y += 2 * mm

    def _render_speaker(self, layout: _PdfLayout, payload: ReportPayload, assets: ReportAssets):
        for label, value in sections.speaker_fields(payload):
            layout.field(label, value)
        bio = sections.speaker_bio(payload)
        if bio:
            layout.italic_note(bio)
        for label, value in sections.speaker_feedback_fields(payload):
            layout.field(label, value)
        layout.y += 2 * mm

    def _render_description(self, layout: _PdfLayout, payload: ReportPayload, assets: ReportAssets):
        layout.paragraph(payload.fields.event_summary)
        items = sections.highlight_items(payload)
        if items:
            layout.highlights(items)

    def _render_participation(self, layout: _PdfLayout, payload: ReportPayload, assets: ReportAssets):
        summary_width = CONTENT_WIDTH * 0.55
        layout.table(
            sections.PARTICIPATION_HEADER,
            sections.participation_rows(payload),
            [summary_width * 0.62, summary_width * 0.38],
            size=9,
            bold_first_column=True,
            aligns=['left', 'center'],
        )
        if payload.attendee_count > 0:
            layout.subheading(sections.ATTENDEE_LIST_TITLE)
            weights = [0.5, 1.8, 2.4, 0.8, 1.3, 1.6]
            total = sum(weights)
            layout.table(
                sections.ATTENDEE_HEADER,
                sections.attendee_rows(payload),
                [CONTENT_WIDTH * weight / total for weight in weights],
                size=8,
            )

    def _render_outcomes(self, layout: _PdfLayout, payload: ReportPayload, assets: ReportAssets):
        layout.paragraph(payload.fields.outcomes)

    def _render_feedback(self, layout: _PdfLayout, payload: ReportPayload, assets: ReportAssets):
        layout.table(
            sections.FEEDBACK_HEADER,
            sections.feedback_rows(payload, star_glyphs=layout.star_glyphs),
            [55 * mm, CONTENT_WIDTH - 55 * mm],
            size=9,
            bold_first_column=True,
        )

    def _render_photos(self, layout: _PdfLayout, payload: ReportPayload, assets: ReportAssets):
        layout.photo_grid(assets.photos)

    def _render_conclusion(self, layout: _PdfLayout, payload: ReportPayload, assets: ReportAssets):
        layout.paragraph(payload.fields.conclusion)
