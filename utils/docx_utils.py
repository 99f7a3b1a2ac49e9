"""
python-docx helpers for the pieces the public API does not cover:
field codes, cell shading, paragraph borders and table borders.
"""
from docx.oxml import OxmlElement
from docx.oxml.ns import qn

# Schema order: these siblings must follow the inserted element
_AFTER_PBDR = (
    'w:shd', 'w:tabs', 'w:suppressAutoHyphens', 'w:kinsoku', 'w:wordWrap',
    'w:overflowPunct', 'w:topLinePunct', 'w:autoSpaceDE', 'w:autoSpaceDN', 'w:bidi',
    'w:adjustRightInd', 'w:snapToGrid', 'w:spacing', 'w:ind', 'w:contextualSpacing',
    'w:mirrorIndents', 'w:suppressOverlap', 'w:jc', 'w:textDirection', 'w:textAlignment',
    'w:textboxTightWrap', 'w:outlineLvl', 'w:divId', 'w:cnfStyle', 'w:rPr',
    'w:sectPr', 'w:pPrChange',
)
_AFTER_TBL_BORDERS = (
    'w:shd', 'w:tblLayout', 'w:tblCellMar', 'w:tblLook', 'w:tblCaption',
    'w:tblDescription', 'w:tblPrChange',
)


def add_field(paragraph, instruction: str, placeholder: str = '1', font_size=None, color=None):
    """Append a live field (PAGE, NUMPAGES, ...) that Word evaluates on open."""
    def _run(text=None):
        run = paragraph.add_run(text)
        if font_size is not None:
            run.font.size = font_size
        if color is not None:
            run.font.color.rgb = color
        return run

    begin = OxmlElement('w:fldChar')
    begin.set(qn('w:fldCharType'), 'begin')
    _run()._r.append(begin)

    instr = OxmlElement('w:instrText')
    instr.set(qn('xml:space'), 'preserve')
    instr.text = f' {instruction} '
    _run()._r.append(instr)

    separate = OxmlElement('w:fldChar')
    separate.set(qn('w:fldCharType'), 'separate')
    _run()._r.append(separate)

    # Cached result shown until fields are updated
    _run(placeholder)

    end = OxmlElement('w:fldChar')
    end.set(qn('w:fldCharType'), 'end')
    _run()._r.append(end)


def set_cell_shading(cell, fill_hex: str):
    shading = OxmlElement('w:shd')
    shading.set(qn('w:val'), 'clear')
    shading.set(qn('w:color'), 'auto')
    shading.set(qn('w:fill'), fill_hex.lstrip('#'))
    cell._tc.get_or_add_tcPr().append(shading)


def set_paragraph_border(paragraph, edge: str = 'bottom', color_hex: str = 'C8D2E6', size: int = 6):
    """Draw a single rule above or below a paragraph ('top' or 'bottom')."""
    p_pr = paragraph._p.get_or_add_pPr()
    borders = p_pr.find(qn('w:pBdr'))
    if borders is None:
        borders = OxmlElement('w:pBdr')
        p_pr.insert_element_before(borders, *_AFTER_PBDR)
    line = OxmlElement(f'w:{edge}')
    line.set(qn('w:val'), 'single')
    line.set(qn('w:sz'), str(size))
    line.set(qn('w:space'), '1')
    line.set(qn('w:color'), color_hex.lstrip('#'))
    borders.append(line)


def remove_table_borders(table):
    tbl_pr = table._tbl.tblPr
    borders = OxmlElement('w:tblBorders')
    for edge in ('top', 'left', 'bottom', 'right', 'insideH', 'insideV'):
        element = OxmlElement(f'w:{edge}')
        element.set(qn('w:val'), 'nil')
        borders.append(element)
    tbl_pr.insert_element_before(borders, *_AFTER_TBL_BORDERS)


def mark_header_row(row):
    """Repeat the row at the top of each page the table spans."""
    tr_pr = row._tr.get_or_add_trPr()
    header = OxmlElement('w:tblHeader')
    header.set(qn('w:val'), 'true')
    tr_pr.append(header)
