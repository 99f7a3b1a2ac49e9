"""
PDF helpers: font discovery for glyphs outside the standard fonts, colors and
text measurement.
"""
import logging
import threading
from pathlib import Path
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from config import FILE_PATHS

logger = logging.getLogger(__name__)

DEFAULT_FONT_NAME = 'Helvetica'
BOLD_FONT_NAME = 'Helvetica-Bold'
ITALIC_FONT_NAME = 'Helvetica-Oblique'
UNICODE_FONT_NAME = 'ReportUnicode'

_font_state = {'resolved': False, 'name': None}
_font_lock = threading.Lock()


def _font_candidates() -> List[Path]:
    """Bundled fonts first, then common Linux and Windows locations."""
    candidates = []
    fonts_dir = Path(FILE_PATHS['fonts'])
    if fonts_dir.exists():
        candidates.extend(sorted(fonts_dir.glob('*.ttf')))
    candidates.extend([
        Path('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf'),
        Path('/usr/share/fonts/dejavu/DejaVuSans.ttf'),
        Path('/usr/share/fonts/TTF/DejaVuSans.ttf'),
        Path('/usr/local/share/fonts/DejaVuSans.ttf'),
        Path('/Library/Fonts/Arial Unicode.ttf'),
        Path('C:/Windows/Fonts/seguisym.ttf'),
        Path('C:/Windows/Fonts/arialuni.ttf'),
    ])
    return [path for path in candidates if path.exists()]


def register_unicode_font() -> Optional[str]:
    """Register the first usable TTF under UNICODE_FONT_NAME.

    Returns the registered name, or None when no TrueType font was found; callers
    then stay on the standard fonts and skip glyphs those cannot draw.
    """
    with _font_lock:
        if _font_state['resolved']:
            return _font_state['name']
        for path in _font_candidates():
            try:
                pdfmetrics.registerFont(TTFont(UNICODE_FONT_NAME, str(path)))
            except Exception as exc:
                logger.warning("Failed to register font %s: %s", path, exc)
                continue
            logger.info("PDF Fonts: registered %s from %s", UNICODE_FONT_NAME, path)
            _font_state['name'] = UNICODE_FONT_NAME
            break
        else:
            logger.warning("PDF Fonts: no TrueType font found, using standard fonts only")
        _font_state['resolved'] = True
        return _font_state['name']


def supports_glyphs(font_name: Optional[str], text: str) -> bool:
    """True when every character of text maps to a glyph in the TrueType font."""
    if not font_name:
        return False
    try:
        font = pdfmetrics.getFont(font_name)
        char_map = font.face.charToGlyph
    except Exception:
        return False
    return all(ord(char) in char_map for char in text if not char.isspace())


def hex_to_color(hex_color: str):
    """Convert hex color to ReportLab color object"""
    return colors.HexColor(hex_color if hex_color.startswith('#') else f"#{hex_color}")


def wrap_text(text: str, font_name: str, font_size: float, width: float) -> List[str]:
    """Split text into lines no wider than width; always at least one line."""
    lines = []
    for paragraph in text.split('\n'):
        lines.extend(simpleSplit(paragraph, font_name, font_size, width) or [''])
    return lines or ['']


def text_width(text: str, font_name: str, font_size: float) -> float:
    return pdfmetrics.stringWidth(text, font_name, font_size)
