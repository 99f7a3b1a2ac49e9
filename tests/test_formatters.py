from datetime import datetime

import pytest

from utils.formatters import (
    PLACEHOLDER,
    capitalize,
    clamp_rating,
    format_date,
    format_time,
    format_timestamp,
    or_placeholder,
    report_filename,
    sanitize,
    star_rating,
    to_count,
    yes_no,
)


@pytest.mark.parametrize("raw, expected", [
    ("**Bold** text", "Bold text"),
    ("# Heading", "Heading"),
    ("  lots   of\n\n spaces  ", "lots of spaces"),
    ("Here is the prompt you asked for. Real content", "Real content"),
    ("A production-ready plan", "A plan"),
    ("A PRODUCTION READY plan", "A plan"),
    (None, ""),
    (42, "42"),
])
def test_sanitize(raw, expected):
    assert sanitize(raw) == expected


def test_sanitize_is_idempotent():
    samples = [
        "production*-ready",
        "Here is ** the prompt. Body",
        "> quoted `code` _under_",
        "produc_tion ready",
    ]
    for text in samples:
        once = sanitize(text)
        assert sanitize(once) == once


def test_placeholders_and_capitalize():
    assert or_placeholder("") == PLACEHOLDER
    assert or_placeholder("  ", "—") == "—"
    assert capitalize("offline") == "Offline"
    assert capitalize("") == PLACEHOLDER
    assert capitalize(None) == PLACEHOLDER


def test_format_date_and_time():
    assert format_date("2024-03-01") == "1 March 2024"
    assert format_date("2024-12-25T10:00:00Z") == "25 December 2024"
    assert format_date("not a date") == PLACEHOLDER
    assert format_date(None) == PLACEHOLDER
    assert format_time("14:30:00") == "2:30 PM"
    assert format_time("00:05") == "12:05 AM"
    assert format_time("12:00") == "12:00 PM"
    assert format_time("25:00") == PLACEHOLDER
    assert format_time("noon") == PLACEHOLDER


def test_format_timestamp():
    assert format_timestamp(datetime(2024, 3, 1, 9, 5, 7)) == "01/03/2024, 09:05:07"


@pytest.mark.parametrize("value, expected", [
    (6, 5), (0, 1), (-3, 1), (3, 3), ("5", 5), ("abc", 4), (None, 4), ("", 4), (4.6, 5),
])
def test_clamp_rating(value, expected):
    assert clamp_rating(value) == expected


@pytest.mark.parametrize("value, expected", [
    ("40", 40), (7, 7), ("abc", 0), ("", 0), (None, 0), ("-5", 0), ("3.0", 3),
])
def test_to_count(value, expected):
    assert to_count(value) == expected


def test_star_rating():
    assert star_rating(4) == "★★★★☆ (4/5)"
    assert star_rating(6) == "★★★★★ (5/5)"
    assert star_rating(0) == "★☆☆☆☆ (1/5)"
    assert star_rating(3, glyphs=False) == "3/5"


def test_yes_no():
    assert yes_no(True) == "Yes"
    assert yes_no("yes") == "Yes"
    assert yes_no("no") == "No"
    assert yes_no(False) == "No"


def test_report_filename():
    assert report_filename("AI Workshop 2024", "pdf") == "AI_Workshop_2024_report.pdf"
    assert report_filename("Meet & Greet!", "docx") == "Meet___Greet__report.docx"
    assert report_filename("", ".pdf") == "event_report.pdf"
