"""
Data models package for the alumni event report service
"""
from .data_models import (
    ReportError,
    ReportValidationError,
    EventNotFoundError,
    UnsupportedFormatError,
    DataServiceError,
    PersistenceError,
    Speaker,
    EventInfo,
    Attendee,
    Branding,
    ReportFormData,
    ReportFields,
    ReportPayload,
    LoadedImage,
    ReportAssets,
    ReportRecord,
    ReportDocument,
    GenerationResult
)

__all__ = [
    'ReportError',
    'ReportValidationError',
    'EventNotFoundError',
    'UnsupportedFormatError',
    'DataServiceError',
    'PersistenceError',
    'Speaker',
    'EventInfo',
    'Attendee',
    'Branding',
    'ReportFormData',
    'ReportFields',
    'ReportPayload',
    'LoadedImage',
    'ReportAssets',
    'ReportRecord',
    'ReportDocument',
    'GenerationResult'
]
