"""
Assemble the immutable report payload from the event, its attendees, photos
and the submitted form.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from models import (
    Attendee,
    Branding,
    EventInfo,
    ReportFields,
    ReportFormData,
    ReportPayload,
    ReportRecord,
    ReportValidationError,
)
from utils.formatters import clamp_rating, sanitize, to_count

logger = logging.getLogger(__name__)

# Checked in this order; messages are shown to the user as-is
REQUIRED_FIELDS = [
    ('event_summary', "Event summary is required"),
    ('key_highlights', "Key highlights are required"),
    ('outcomes', "Outcomes are required"),
    ('coordinator_name', "Coordinator name is required"),
    ('approved_by', "Approved by is required"),
]
SPEAKER_RATINGS = ('excellent', 'good', 'average')


def validate_form(form: ReportFormData) -> None:
    """Raise ReportValidationError naming every blank required field."""
    missing, messages = [], []
    for name, message in REQUIRED_FIELDS:
        value = getattr(form, name)
        if value is None or not str(value).strip():
            missing.append(name)
            messages.append(message)
    if missing:
        raise ReportValidationError(missing, messages)


def _was_useful(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('yes', 'true', '1')
    return bool(value)


def _speaker_rating(value) -> str:
    rating = sanitize(value).lower()
    return rating if rating in SPEAKER_RATINGS else 'good'


def normalize_fields(form: ReportFormData) -> ReportFields:
    return ReportFields(
        introduction=sanitize(form.introduction),
        event_summary=sanitize(form.event_summary),
        key_highlights=str(form.key_highlights or '').strip(),
        outcomes=sanitize(form.outcomes),
        speaker_rating=_speaker_rating(form.speaker_rating),
        speaker_feedback=sanitize(form.speaker_feedback),
        overall_rating=clamp_rating(form.overall_rating),
        was_useful=_was_useful(form.was_useful),
        what_went_well=sanitize(form.what_went_well),
        what_to_improve=sanitize(form.what_to_improve),
        future_suggestions=sanitize(form.future_suggestions),
        conclusion=sanitize(form.conclusion),
        students_attended=to_count(form.students_attended),
        external_guests=to_count(form.external_guests),
        coordinator_name=sanitize(form.coordinator_name),
        approved_by=sanitize(form.approved_by),
    )


def _photo_refs(refs: Optional[Iterable[str]]) -> List[str]:
    return [ref.strip() for ref in (refs or []) if isinstance(ref, str) and ref.strip()]


def build_report_payload(event: EventInfo,
                         form: ReportFormData,
                         attendees: Iterable[Attendee],
                         stored_photos: Optional[Iterable[str]] = None,
                         uploaded_photos: Optional[Iterable[str]] = None,
                         branding: Optional[Branding] = None,
                         generated_at: Optional[datetime] = None) -> ReportPayload:
    """Build the payload both layout engines read. Validation happens earlier."""
    fields = normalize_fields(form)
    attendees = tuple(attendees)
    # Stored photos first, then the ones uploaded with this request
    photos = tuple(_photo_refs(stored_photos) + _photo_refs(uploaded_photos))
    total = len(attendees) + fields.students_attended + fields.external_guests
    logger.debug("Payload for event %s: %s attendees, %s photos, %s participants",
                 event.id, len(attendees), len(photos), total)
    return ReportPayload(
        event=event,
        fields=fields,
        attendees=attendees,
        photos=photos,
        branding=branding or Branding(),
        total_participants=total,
        generated_at=generated_at or datetime.now(),
    )


def build_report_record(payload: ReportPayload, event_id: str,
                        generated_by: Optional[str] = None) -> ReportRecord:
    fields = payload.fields
    return ReportRecord(
        event_id=event_id,
        introduction=fields.introduction,
        event_summary=fields.event_summary,
        key_highlights=fields.key_highlights,
        outcomes=fields.outcomes,
        speaker_rating=fields.speaker_rating,
        speaker_feedback=fields.speaker_feedback,
        overall_rating=fields.overall_rating,
        was_useful=fields.was_useful,
        what_went_well=fields.what_went_well,
        what_to_improve=fields.what_to_improve,
        future_suggestions=fields.future_suggestions,
        conclusion=fields.conclusion,
        students_attended=fields.students_attended,
        external_guests=fields.external_guests,
        coordinator_name=fields.coordinator_name,
        approved_by=fields.approved_by,
        generated_by=generated_by,
    )
