"""
Text, number and date formatting shared by the PDF and DOCX report engines.

Every function here is total: bad input degrades to a placeholder instead of
raising, so the layout engines never need their own guards.
"""
import re
from datetime import date, datetime
from typing import Any, Optional

PLACEHOLDER = "N/A"
DASH = "—"
FILLED_STAR = "★"
EMPTY_STAR = "☆"

MIN_RATING = 1
MAX_RATING = 5
DEFAULT_RATING = 4

# Residual instruction/boilerplate fragments that leak into free-text answers
_NOISE_PATTERNS = [
    re.compile(r"Here is.*?prompt[^.]*\.?", re.IGNORECASE),
    re.compile(r"production[- ]?ready", re.IGNORECASE),
]
_MARKDOWN_MARKERS = re.compile(r"[#*_`>]")
_WHITESPACE_RUNS = re.compile(r"\s{2,}")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def _sanitize_once(text: str) -> str:
    for pattern in _NOISE_PATTERNS:
        text = pattern.sub("", text)
    text = _MARKDOWN_MARKERS.sub("", text)
    text = _WHITESPACE_RUNS.sub(" ", text)
    return text.strip()


def sanitize(text: Any) -> str:
    """Strip prompt artifacts, markdown markers and excess whitespace.

    Removing a marker can glue two fragments into a new noise phrase, so the
    cleanup repeats until the text stops changing.
    """
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)
    cleaned = _sanitize_once(text)
    while True:
        again = _sanitize_once(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again


def or_placeholder(text: Any, placeholder: str = PLACEHOLDER) -> str:
    return sanitize(text) or placeholder


def capitalize(value: Any) -> str:
    text = sanitize(value)
    if not text:
        return PLACEHOLDER
    return text[0].upper() + text[1:]


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return datetime.strptime(str(value).strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def format_date(value: Any) -> str:
    """Format an ISO date as '1 March 2024'."""
    parsed = _parse_date(value)
    if parsed is None:
        return PLACEHOLDER
    return f"{parsed.day} {parsed.strftime('%B')} {parsed.year}"


def format_time(value: Any) -> str:
    """Format 'HH:MM[:SS]' as a 12-hour clock time, e.g. '2:30 PM'."""
    if not value:
        return PLACEHOLDER
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        return PLACEHOLDER
    try:
        hour = int(parts[0])
        minute = int(parts[1])
    except ValueError:
        return PLACEHOLDER
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return PLACEHOLDER
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


def format_timestamp(moment: datetime) -> str:
    return moment.strftime("%d/%m/%Y, %H:%M:%S")


def clamp_rating(value: Any) -> int:
    """Coerce an overall rating into [1, 5]; unusable input takes the default."""
    if isinstance(value, bool) or value is None or value == "":
        return DEFAULT_RATING
    try:
        rating = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_RATING
    return max(MIN_RATING, min(MAX_RATING, rating))


def to_count(value: Any) -> int:
    """Coerce a head count to a non-negative integer (0 when unusable)."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        count = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(count, 0)


def star_rating(rating: Any, glyphs: bool = True) -> str:
    """Render a rating as '★★★★☆ (4/5)', or '4/5' when glyphs are unavailable."""
    value = clamp_rating(rating)
    fraction = f"{value}/{MAX_RATING}"
    if not glyphs:
        return fraction
    return f"{FILLED_STAR * value}{EMPTY_STAR * (MAX_RATING - value)} ({fraction})"


def yes_no(value: Any) -> str:
    if isinstance(value, str):
        return "Yes" if value.strip().lower() in ("yes", "true", "1") else "No"
    return "Yes" if value else "No"


def report_filename(title: Any, extension: str) -> str:
    """'AI Workshop 2024' + 'pdf' -> 'AI_Workshop_2024_report.pdf'."""
    stem = _NON_ALNUM.sub("_", sanitize(title)) or "event"
    return f"{stem}_report.{extension.lstrip('.')}"
