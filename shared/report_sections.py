"""
Section content shared by the PDF and DOCX engines.

Both engines walk the same sections, fields and table rows built here, so the
two output formats can only differ in layout mechanics, never in content.
"""
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from config import get_institution_config
from models import ReportAssets, ReportPayload
from utils.formatters import (
    DASH,
    capitalize,
    format_date,
    format_time,
    format_timestamp,
    or_placeholder,
    sanitize,
    star_rating,
    yes_no,
)


@dataclass(frozen=True)
class Section:
    number: int
    key: str
    title: str

    @property
    def heading(self) -> str:
        return f"{self.number}. {self.title}"


# Numbering is fixed per section identity; absent sections leave gaps
INTRODUCTION = Section(1, 'introduction', 'Introduction')
OVERVIEW = Section(2, 'overview', 'Event Overview')
SPEAKER = Section(3, 'speaker', 'Speaker Details')
DESCRIPTION = Section(4, 'description', 'Event Description')
PARTICIPATION = Section(5, 'participation', 'Participation Details')
OUTCOMES = Section(6, 'outcomes', 'Outcomes & Impact')
FEEDBACK = Section(7, 'feedback', 'Feedback & Evaluation')
PHOTOS = Section(8, 'photos', 'Event Photos')
CONCLUSION = Section(9, 'conclusion', 'Conclusion')

ALL_SECTIONS = (
    INTRODUCTION, OVERVIEW, SPEAKER, DESCRIPTION, PARTICIPATION,
    OUTCOMES, FEEDBACK, PHOTOS, CONCLUSION,
)

PARTICIPATION_HEADER = ("Category", "Count")
ATTENDEE_HEADER = ("#", "Name", "Email", "Year", "Degree", "Company")
FEEDBACK_HEADER = ("Parameter", "Response")
ATTENDEE_LIST_TITLE = "Alumni Attendance List"
HIGHLIGHTS_TITLE = "Key Highlights:"
APPROVAL_TITLE = "APPROVAL & AUTHORIZATION"
COORDINATOR_CAPTION = "Event Coordinator"
APPROVER_CAPTION = "HOD / Director"
LOGO_PLACEHOLDERS = ("LOGO", "DEPT")


def visible_sections(payload: ReportPayload, assets: ReportAssets) -> Iterator[Section]:
    fields = payload.fields
    for section in ALL_SECTIONS:
        if section is INTRODUCTION and not fields.introduction:
            continue
        if section is SPEAKER and payload.event.speaker is None:
            continue
        if section is PHOTOS and not assets.photos:
            continue
        if section is CONCLUSION and not fields.conclusion:
            continue
        yield section


def department_line(payload: ReportPayload) -> str:
    return f"Department of {or_placeholder(payload.event.department_name)}"


def banner_lines(payload: ReportPayload) -> List[str]:
    """Institution, department, report title, event title, when, where/how."""
    event = payload.event
    institution = get_institution_config()
    return [
        institution['name'],
        department_line(payload),
        institution['report_title'],
        sanitize(event.title),
        f"{format_date(event.event_date)}  |  {format_time(event.event_time)}",
        f"Venue: {or_placeholder(event.venue)}  |  Mode: {capitalize(event.mode)}  |  Type: {capitalize(event.event_type)}",
    ]


def coordinator_line(payload: ReportPayload) -> str:
    return (
        f"Organized by: {or_placeholder(payload.fields.coordinator_name)}  |  "
        f"Department: {or_placeholder(payload.event.department_name)}"
    )


def overview_fields(payload: ReportPayload) -> List[Tuple[str, str]]:
    event = payload.event
    fields = [
        ("Theme / Topic", or_placeholder(event.title)),
        ("Type", capitalize(event.event_type)),
        ("Mode", capitalize(event.mode)),
        ("Date", format_date(event.event_date)),
        ("Time", format_time(event.event_time)),
        ("Venue", or_placeholder(event.venue)),
    ]
    if event.expected_participants is not None:
        fields.append(("Expected Participants", str(event.expected_participants)))
    return fields


def speaker_fields(payload: ReportPayload) -> List[Tuple[str, str]]:
    """Label/value pairs printed before the bio."""
    speaker = payload.event.speaker
    if speaker is None:
        return []
    fields = [("Name", or_placeholder(speaker.name))]
    if sanitize(speaker.designation):
        fields.append(("Designation", sanitize(speaker.designation)))
    if sanitize(speaker.organization):
        fields.append(("Organization", sanitize(speaker.organization)))
    return fields


def speaker_bio(payload: ReportPayload) -> str:
    speaker = payload.event.speaker
    return sanitize(speaker.bio) if speaker else ""


def speaker_feedback_fields(payload: ReportPayload) -> List[Tuple[str, str]]:
    """Label/value pairs printed after the bio."""
    fields = [("Speaker Rating", capitalize(payload.fields.speaker_rating))]
    if payload.fields.speaker_feedback:
        fields.append(("Feedback", payload.fields.speaker_feedback))
    return fields


def highlight_items(payload: ReportPayload) -> List[str]:
    items = []
    for line in payload.fields.key_highlights.split('\n'):
        item = sanitize(line)
        if item.startswith('-'):
            item = item[1:].strip()
        if item:
            items.append(item)
    return items


def participation_rows(payload: ReportPayload) -> List[Tuple[str, str]]:
    fields = payload.fields
    return [
        ("Alumni Attended", str(payload.attendee_count)),
        ("Students Attended", str(fields.students_attended)),
        ("External Guests", str(fields.external_guests)),
        ("Total Participants", str(payload.total_participants)),
    ]


def attendee_rows(payload: ReportPayload) -> List[Tuple[str, ...]]:
    """Roster cells are printed as stored, without sanitizing."""
    rows = []
    for index, attendee in enumerate(payload.attendees, start=1):
        values = (attendee.name, attendee.email, attendee.graduation_year, attendee.degree, attendee.company)
        rows.append((str(index),) + tuple(value.strip() or DASH for value in values))
    return rows


def feedback_rows(payload: ReportPayload, star_glyphs: bool = True) -> List[Tuple[str, str]]:
    fields = payload.fields
    return [
        ("Overall Rating", star_rating(fields.overall_rating, glyphs=star_glyphs)),
        ("Was the event useful?", yes_no(fields.was_useful)),
        ("What went well?", fields.what_went_well or DASH),
        ("What can be improved?", fields.what_to_improve or DASH),
        ("Suggestions for future", fields.future_suggestions or DASH),
    ]


def signature_names(payload: ReportPayload) -> Tuple[str, str]:
    return or_placeholder(payload.fields.coordinator_name), or_placeholder(payload.fields.approved_by)


def running_title(payload: ReportPayload) -> str:
    """Header line repeated on continuation pages."""
    return f"Alumni Event Report — {sanitize(payload.event.title)}"


def footer_text(page: Optional[int] = None, total: Optional[int] = None) -> str:
    institution = get_institution_config()
    text = f"{institution['footer_name']}  |  {institution['portal_name']}"
    if page is not None and total is not None:
        text += f"  |  Page {page} of {total}"
    return text


def generated_line(payload: ReportPayload) -> str:
    return f"Generated: {format_timestamp(payload.generated_at)}"
