"""
Alumni event reports - test configuration and fixtures
"""
import base64
import os
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image

# Set testing environment before the config module is imported
os.environ['JWT_SECRET'] = 'test-jwt-secret'
os.environ['JWT_ALGORITHM'] = 'HS256'
os.environ['IMAGE_ALLOWED_HOSTS'] = ''
os.environ['REPORT_STORE_BACKEND'] = 'rest'
os.environ['LOG_LEVEL'] = 'WARNING'

from models import (  # noqa: E402
    Attendee,
    Branding,
    EventInfo,
    PersistenceError,
    ReportAssets,
    ReportFormData,
    ReportRecord,
)
from services.image_loader import reencode_image  # noqa: E402
from services.pdf_service import ReportCanvas  # noqa: E402
from services.report_builder import build_report_payload  # noqa: E402

GENERATED_AT = datetime(2024, 3, 1, 14, 30, 5)


def make_image_bytes(size=(40, 30), color=(200, 40, 40), fmt='PNG', mode='RGB') -> bytes:
    image = Image.new(mode, size, color if mode == 'RGB' else color + (128,))
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def data_url(raw: bytes, mime: str = 'image/png') -> str:
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


def event_record(**overrides) -> Dict[str, Any]:
    record = {
        'id': 'evt-1',
        'title': 'AI Workshop 2024',
        'event_date': '2024-03-01',
        'event_time': '14:30:00',
        'venue': 'Main Auditorium',
        'event_type': 'workshop',
        'mode': 'offline',
        'description': 'Hands-on session',
        'coordinator_name': 'Dr. Rao',
        'expected_participants': 120,
        'speaker_name': 'Jane Doe',
        'speaker_designation': 'Principal Engineer',
        'speaker_organization': 'Acme Labs',
        'speaker_bio': 'Jane builds machine learning platforms.',
        'departments': {'name': 'Computer Science', 'logo_url': None},
    }
    record.update(overrides)
    return record


def make_attendees(count: int) -> List[Attendee]:
    return [
        Attendee(
            name=f"Alumni {index:02d}",
            email=f"alumni_{index:02d}@example.com",
            graduation_year=str(2010 + index % 10),
            degree='B.Tech',
            company='Example Corp',
        )
        for index in range(1, count + 1)
    ]


def make_form(**overrides) -> ReportFormData:
    values = {
        'introduction': 'A workshop on applied AI for alumni.',
        'event_summary': 'Alumni and students explored model deployment.',
        'key_highlights': '- Live demo\n- Panel discussion\n\n- Networking',
        'outcomes': 'Three mentorship pairs were formed.',
        'coordinator_name': 'Dr. Rao',
        'approved_by': 'Prof. Iyer',
        'speaker_rating': 'excellent',
        'speaker_feedback': 'Clear and engaging.',
        'overall_rating': 4,
        'was_useful': 'yes',
        'what_went_well': 'Timing',
        'what_to_improve': 'Seating',
        'future_suggestions': 'Run a follow-up',
        'conclusion': 'The event met its goals.',
        'students_attended': '40',
        'external_guests': '5',
    }
    values.update(overrides)
    return ReportFormData.from_dict(values)


def make_payload(event: Optional[Dict[str, Any]] = None, form: Optional[ReportFormData] = None,
                 attendees: Optional[List[Attendee]] = None, photos: Optional[List[str]] = None,
                 branding: Optional[Branding] = None):
    return build_report_payload(
        EventInfo.from_record(event or event_record()),
        form or make_form(),
        make_attendees(3) if attendees is None else attendees,
        photos or [],
        [],
        branding or Branding(),
        generated_at=GENERATED_AT,
    )


def loaded_image(size=(40, 30)):
    return reencode_image(make_image_bytes(size), 80)


def make_recording_canvas():
    """Canvas class that logs every string and image drawn, keyed by page."""
    records = {'text': [], 'images': []}

    class RecordingCanvas(ReportCanvas):
        def drawString(self, x, y, text, *args, **kwargs):
            records['text'].append((self.getPageNumber(), text))
            return super().drawString(x, y, text, *args, **kwargs)

        def drawCentredString(self, x, y, text, *args, **kwargs):
            records['text'].append((self.getPageNumber(), text))
            return super().drawCentredString(x, y, text, *args, **kwargs)

        def drawRightString(self, x, y, text, *args, **kwargs):
            records['text'].append((self.getPageNumber(), text))
            return super().drawRightString(x, y, text, *args, **kwargs)

        def drawImage(self, image, x, y, *args, **kwargs):
            result = super().drawImage(image, x, y, *args, **kwargs)
            records['images'].append((self.getPageNumber(), x, y))
            return result

    return RecordingCanvas, records


class FakeAlumniApi:
    """In-memory stand-in for AlumniApiService"""

    def __init__(self, event: Optional[Dict[str, Any]] = None, attendees: Optional[List[Attendee]] = None,
                 photos: Optional[List[str]] = None, missing: bool = False):
        self.event = None if missing else EventInfo.from_record(event or event_record())
        self.attendees = make_attendees(3) if attendees is None else attendees
        self.photos = photos or []
        self.calls: List[str] = []

    async def get_event(self, event_id):
        self.calls.append('get_event')
        return self.event

    async def get_attendees(self, event_id):
        self.calls.append('get_attendees')
        return list(self.attendees)

    async def get_photo_urls(self, event_id):
        self.calls.append('get_photo_urls')
        return list(self.photos)


class FakeReportStore:
    """Append-only list of saved records; optionally fails every save"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.saved: List[ReportRecord] = []

    async def save(self, record: ReportRecord) -> str:
        if self.fail:
            raise PersistenceError("database unavailable")
        self.saved.append(record)
        return f"rec-{len(self.saved)}"

    async def list_for_event(self, event_id: str) -> List[ReportRecord]:
        return [record for record in reversed(self.saved) if record.event_id == event_id]


@pytest.fixture
def payload():
    return make_payload()


@pytest.fixture
def empty_assets():
    return ReportAssets()


@pytest.fixture
def png_bytes():
    return make_image_bytes()


@pytest.fixture
def recording_canvas():
    return make_recording_canvas()
