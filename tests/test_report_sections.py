from models import ReportAssets
from shared import report_sections as sections

from conftest import event_record, loaded_image, make_attendees, make_form, make_payload


def keys(payload, assets):
    return [section.key for section in sections.visible_sections(payload, assets)]


def test_all_sections_present_with_photos(payload):
    assets = ReportAssets(photos=(loaded_image(),))
    assert [s.number for s in sections.visible_sections(payload, assets)] == list(range(1, 10))


def test_optional_sections_are_omitted_and_numbers_stay_fixed():
    payload = make_payload(
        event=event_record(speaker_name=None),
        form=make_form(introduction='', conclusion=''),
    )
    visible = list(sections.visible_sections(payload, ReportAssets()))
    assert [s.key for s in visible] == ['overview', 'description', 'participation', 'outcomes', 'feedback']
    assert [s.heading for s in visible][:2] == ["2. Event Overview", "4. Event Description"]


def test_banner_lines(payload):
    lines = sections.banner_lines(payload)
    assert len(lines) == 6
    assert lines[1] == "Department of Computer Science"
    assert lines[3] == "AI Workshop 2024"
    assert lines[4] == "1 March 2024  |  2:30 PM"
    assert lines[5] == "Venue: Main Auditorium  |  Mode: Offline  |  Type: Workshop"


def test_overview_includes_expected_participants_only_when_set():
    assert ("Expected Participants", "120") in sections.overview_fields(make_payload())
    labels = [label for label, _ in sections.overview_fields(make_payload(event=event_record(expected_participants=None)))]
    assert "Expected Participants" not in labels


def test_highlight_items_drop_blank_lines_and_dashes(payload):
    assert sections.highlight_items(payload) == ["Live demo", "Panel discussion", "Networking"]


def test_participation_and_attendee_rows():
    payload = make_payload(attendees=make_attendees(2))
    assert sections.participation_rows(payload)[-1] == ("Total Participants", "47")
    rows = sections.attendee_rows(payload)
    assert rows[0][:3] == ("1", "Alumni 01", "alumni_01@example.com")
    assert rows[1][0] == "2"


def test_feedback_rows_with_and_without_glyphs():
    payload = make_payload(form=make_form(overall_rating=6, what_went_well=''))
    assert sections.feedback_rows(payload)[0] == ("Overall Rating", "★★★★★ (5/5)")
    assert sections.feedback_rows(payload, star_glyphs=False)[0] == ("Overall Rating", "5/5")
    assert sections.feedback_rows(payload)[2] == ("What went well?", "—")


def test_footer_and_running_title(payload):
    assert sections.running_title(payload) == "Alumni Event Report — AI Workshop 2024"
    assert sections.footer_text(2, 5).endswith("Page 2 of 5")
    assert sections.generated_line(payload) == "Generated: 01/03/2024, 14:30:05"


def test_names_that_sanitize_to_nothing_use_the_placeholder():
    payload = make_payload(form=make_form(coordinator_name="**", approved_by="__"))
    assert sections.signature_names(payload) == ("N/A", "N/A")
    assert sections.coordinator_line(payload).startswith("Organized by: N/A  |")
