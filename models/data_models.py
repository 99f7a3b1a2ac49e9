"""
Data models for the alumni event report service
"""
from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO


class ReportError(Exception):
    """Base class for report generation errors"""


class ReportValidationError(ReportError):
    """Required report fields are missing; nothing was generated or saved."""

    def __init__(self, missing: List[str], messages: List[str]):
        self.missing = list(missing)
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class EventNotFoundError(ReportError):
    """The requested event does not exist"""


class UnsupportedFormatError(ReportError):
    """The requested output format has no renderer"""


class DataServiceError(ReportError):
    """The entity store could not be reached or answered with an error"""


class PersistenceError(ReportError):
    """A report record could not be written"""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class Speaker:
    """Speaker model"""
    name: str
    designation: str = ""
    organization: str = ""
    bio: str = ""


@dataclass(frozen=True)
class EventInfo:
    """Event model, as joined with its department"""
    id: str
    title: str
    event_date: str = ""
    event_time: str = ""
    venue: str = ""
    event_type: str = ""
    mode: str = ""
    description: str = ""
    department_name: str = ""
    department_logo_url: str = ""
    expected_participants: Optional[int] = None
    coordinator_name: str = ""
    speaker: Optional[Speaker] = None

    @classmethod
    def from_record(cls, row: Dict[str, Any]) -> "EventInfo":
        department = row.get('departments') or {}
        speaker = None
        if _text(row.get('speaker_name')):
            speaker = Speaker(
                name=_text(row.get('speaker_name')),
                designation=_text(row.get('speaker_designation')),
                organization=_text(row.get('speaker_organization')),
                bio=_text(row.get('speaker_bio')),
            )
        expected = row.get('expected_participants')
        try:
            expected = int(expected) if expected not in (None, "") else None
        except (TypeError, ValueError):
            expected = None
        return cls(
            id=_text(row.get('id')),
            title=_text(row.get('title')),
            event_date=_text(row.get('event_date')),
            event_time=_text(row.get('event_time')),
            venue=_text(row.get('venue')),
            event_type=_text(row.get('event_type')),
            mode=_text(row.get('mode')),
            description=_text(row.get('description')),
            department_name=_text(department.get('name')),
            department_logo_url=_text(department.get('logo_url')),
            expected_participants=expected,
            coordinator_name=_text(row.get('coordinator_name')),
            speaker=speaker,
        )


@dataclass(frozen=True)
class Attendee:
    """Alumni attendee model"""
    name: str = ""
    email: str = ""
    graduation_year: str = ""
    degree: str = ""
    company: str = ""

    @classmethod
    def from_record(cls, row: Dict[str, Any]) -> "Attendee":
        alumni = row.get('alumni') or row
        return cls(
            name=_text(alumni.get('name')),
            email=_text(alumni.get('email')),
            graduation_year=_text(alumni.get('graduation_year')),
            degree=_text(alumni.get('degree')),
            company=_text(alumni.get('company')),
        )


@dataclass(frozen=True)
class Branding:
    """Optional logo and signature references (URLs or data URLs)"""
    college_logo: Optional[str] = None
    department_logo: Optional[str] = None
    coordinator_signature: Optional[str] = None
    approver_signature: Optional[str] = None

    SLOTS = ('college_logo', 'department_logo', 'coordinator_signature', 'approver_signature')

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {slot: getattr(self, slot) for slot in self.SLOTS}


@dataclass
class ReportFormData:
    """Raw report form answers as submitted"""
    event_summary: str = ""
    key_highlights: str = ""
    outcomes: str = ""
    coordinator_name: str = ""
    approved_by: str = ""
    introduction: str = ""
    speaker_rating: str = "good"
    speaker_feedback: str = ""
    overall_rating: Any = 4
    was_useful: Any = "yes"
    what_went_well: str = ""
    what_to_improve: str = ""
    future_suggestions: str = ""
    conclusion: str = ""
    students_attended: Any = "0"
    external_guests: Any = "0"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportFormData":
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in data.items() if key in known and value is not None})

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass(frozen=True)
class ReportFields:
    """Normalized, sanitized form answers consumed by the layout engines"""
    introduction: str
    event_summary: str
    key_highlights: str
    outcomes: str
    speaker_rating: str
    speaker_feedback: str
    overall_rating: int
    was_useful: bool
    what_went_well: str
    what_to_improve: str
    future_suggestions: str
    conclusion: str
    students_attended: int
    external_guests: int
    coordinator_name: str
    approved_by: str


@dataclass(frozen=True)
class ReportPayload:
    """Immutable snapshot driving one generation request"""
    event: EventInfo
    fields: ReportFields
    attendees: Tuple[Attendee, ...]
    photos: Tuple[str, ...]
    branding: Branding
    total_participants: int
    generated_at: datetime

    @property
    def attendee_count(self) -> int:
        return len(self.attendees)


@dataclass(frozen=True)
class LoadedImage:
    """Re-encoded image bytes plus natural pixel size"""
    data: bytes
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 1.0

    def fit(self, max_width: float, max_height: float) -> Tuple[float, float]:
        """Width-first fit into the box keeping the aspect ratio; the height is
        capped at max_height and the width shrinks with it."""
        width = float(max_width)
        height = width / self.aspect_ratio
        if height > max_height:
            height = float(max_height)
            width = height * self.aspect_ratio
        return width, height

    def stream(self) -> BytesIO:
        return BytesIO(self.data)


@dataclass(frozen=True)
class ReportAssets:
    """Images resolved for one generation request"""
    college_logo: Optional[LoadedImage] = None
    department_logo: Optional[LoadedImage] = None
    coordinator_signature: Optional[LoadedImage] = None
    approver_signature: Optional[LoadedImage] = None
    photos: Tuple[LoadedImage, ...] = ()


@dataclass
class ReportRecord:
    """Persisted report row (append-only)"""
    event_id: str
    introduction: str
    event_summary: str
    key_highlights: str
    outcomes: str
    speaker_rating: str
    speaker_feedback: str
    overall_rating: int
    was_useful: bool
    what_went_well: str
    what_to_improve: str
    future_suggestions: str
    conclusion: str
    students_attended: int
    external_guests: int
    coordinator_name: str
    approved_by: str
    generated_by: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None

    COLUMNS = (
        'event_id', 'introduction', 'event_summary', 'key_highlights', 'outcomes',
        'speaker_rating', 'speaker_feedback', 'overall_rating', 'was_useful',
        'what_went_well', 'what_to_improve', 'future_suggestions', 'conclusion',
        'students_attended', 'external_guests', 'coordinator_name', 'approved_by',
        'generated_by',
    )

    def to_dict(self) -> Dict[str, Any]:
        """Row to insert; id and created_at are assigned by the store."""
        return {column: getattr(self, column) for column in self.COLUMNS}

    @classmethod
    def from_record(cls, row: Dict[str, Any]) -> "ReportRecord":
        values = {column: row.get(column) for column in cls.COLUMNS}
        for column in ('overall_rating', 'students_attended', 'external_guests'):
            values[column] = int(values[column] or 0)
        values['was_useful'] = bool(values['was_useful'])
        for column in cls.COLUMNS:
            if values[column] is None and column != 'generated_by':
                values[column] = ""
        return cls(
            id=None if row.get('id') is None else str(row.get('id')),
            created_at=None if row.get('created_at') is None else str(row.get('created_at')),
            **values,
        )


@dataclass(frozen=True)
class ReportDocument:
    """One generated, downloadable file"""
    format: str
    filename: str
    content: bytes
    media_type: str


@dataclass
class GenerationResult:
    """Outcome of one generation request; persistence and rendering reported separately"""
    record_id: Optional[str]
    persistence_error: Optional[str] = None
    documents: List[ReportDocument] = field(default_factory=list)

    @property
    def persisted(self) -> bool:
        return self.persistence_error is None and self.record_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'record_id': self.record_id,
            'persisted': self.persisted,
            'persistence_error': self.persistence_error,
            'files': [document.filename for document in self.documents],
        }
