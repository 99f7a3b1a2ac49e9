import pytest

from models import Branding, EventInfo, ReportFormData, ReportValidationError
from services.report_builder import (
    REQUIRED_FIELDS,
    build_report_payload,
    build_report_record,
    validate_form,
)

from conftest import GENERATED_AT, event_record, make_attendees, make_form, make_payload


def test_validate_form_accepts_complete_form():
    validate_form(make_form())


def test_validate_form_names_every_blank_required_field():
    form = ReportFormData.from_dict({'event_summary': '   ', 'outcomes': 'Done'})
    with pytest.raises(ReportValidationError) as info:
        validate_form(form)
    assert info.value.missing == ['event_summary', 'key_highlights', 'coordinator_name', 'approved_by']
    assert info.value.messages[0] == "Event summary is required"
    assert "Approved by is required" in info.value.messages


def test_required_fields_order():
    assert [name for name, _ in REQUIRED_FIELDS] == [
        'event_summary', 'key_highlights', 'outcomes', 'coordinator_name', 'approved_by',
    ]


def test_form_from_dict_ignores_unknown_and_null_values():
    form = ReportFormData.from_dict({'overall_rating': None, 'surprise': 1, 'outcomes': 'x'})
    assert form.overall_rating == 4
    assert form.outcomes == 'x'


def test_payload_totals_and_counts():
    payload = make_payload(attendees=make_attendees(12))
    assert payload.attendee_count == 12
    assert payload.fields.students_attended == 40
    assert payload.fields.external_guests == 5
    assert payload.total_participants == 57


def test_non_numeric_counts_become_zero():
    form = make_form(students_attended='abc', external_guests='')
    payload = make_payload(form=form, attendees=make_attendees(2))
    assert payload.fields.students_attended == 0
    assert payload.fields.external_guests == 0
    assert payload.total_participants == 2


def test_stored_photos_come_before_uploaded():
    payload = build_report_payload(
        EventInfo.from_record(event_record()),
        make_form(),
        [],
        ['https://cdn.test/s1.jpg', 'https://cdn.test/s2.jpg'],
        ['data:image/png;base64,AAA', '  '],
        None,
        generated_at=GENERATED_AT,
    )
    assert payload.photos == (
        'https://cdn.test/s1.jpg', 'https://cdn.test/s2.jpg', 'data:image/png;base64,AAA',
    )
    assert payload.branding == Branding()
    assert payload.generated_at == GENERATED_AT


def test_fields_are_normalized():
    form = make_form(overall_rating=9, was_useful='no', event_summary='**Great** event',
                     speaker_rating='Superb')
    fields = make_payload(form=form).fields
    assert fields.overall_rating == 5
    assert fields.was_useful is False
    assert fields.event_summary == 'Great event'
    assert fields.speaker_rating == 'good'


def test_build_report_record():
    payload = make_payload(form=make_form(students_attended='12x'))
    record = build_report_record(payload, 'evt-1', 'user-7')
    row = record.to_dict()
    assert row['event_id'] == 'evt-1'
    assert row['generated_by'] == 'user-7'
    assert row['students_attended'] == 0
    assert row['was_useful'] is True
    assert row['overall_rating'] == 4
    assert 'id' not in row
