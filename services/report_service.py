"""
Report generation workflow: validate, aggregate, persist, load images, render.
"""
import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from models import (
    Branding,
    EventNotFoundError,
    GenerationResult,
    PersistenceError,
    ReportFormData,
    ReportRecord,
    UnsupportedFormatError,
)
from services import RENDERERS, get_renderer
from services.api_service import AlumniApiService
from services.image_loader import ImageLoader
from services.report_builder import build_report_payload, build_report_record, validate_form
from services.report_store import ReportStore, get_report_store

logger = logging.getLogger(__name__)

BOTH = 'both'


def resolve_formats(formats: Union[str, Iterable[str], None]) -> List[str]:
    """'pdf' / 'docx' / 'both' (or a list of them) -> ordered, de-duplicated formats"""
    if formats is None:
        raise UnsupportedFormatError("No report format requested")
    if isinstance(formats, str):
        formats = formats.split(',')
    resolved: List[str] = []
    for item in formats:
        name = str(item).strip().lower()
        expanded = list(RENDERERS) if name == BOTH else [name]
        for fmt in expanded:
            if fmt not in RENDERERS:
                raise UnsupportedFormatError(f"Unsupported report format: {item!r}")
            if fmt not in resolved:
                resolved.append(fmt)
    if not resolved:
        raise UnsupportedFormatError("No report format requested")
    return resolved


class ReportService:
    """Generate event reports and keep the append-only report history"""

    def __init__(self, api: Optional[AlumniApiService] = None,
                 store: Optional[ReportStore] = None,
                 image_loader: Optional[ImageLoader] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.api = api or AlumniApiService()
        self.store = store or get_report_store(self.api)
        self.image_loader = image_loader or ImageLoader()
        self.clock = clock

    async def generate(self, event_id: str,
                       form: Union[ReportFormData, Dict[str, Any]],
                       formats: Union[str, Iterable[str]] = 'pdf',
                       uploaded_photos: Optional[Iterable[str]] = None,
                       branding: Optional[Branding] = None,
                       user: Optional[Dict[str, Any]] = None) -> GenerationResult:
        if isinstance(form, dict):
            form = ReportFormData.from_dict(form)
        fmts = resolve_formats(formats)
        validate_form(form)

        event, attendees, stored_photos = await asyncio.gather(
            self.api.get_event(event_id),
            self.api.get_attendees(event_id),
            self.api.get_photo_urls(event_id),
        )
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")

        branding = branding or Branding()
        if not branding.department_logo and event.department_logo_url:
            branding = replace(branding, department_logo=event.department_logo_url)

        payload = build_report_payload(
            event, form, attendees, stored_photos, uploaded_photos, branding,
            generated_at=self.clock(),
        )

        # One record per request, whatever the number of formats
        result = GenerationResult(record_id=None)
        record = build_report_record(payload, event_id, (user or {}).get('id'))
        try:
            result.record_id = await self.store.save(record)
            logger.info("Saved report record %s for event %s", result.record_id, event_id)
        except PersistenceError as exc:
            logger.exception("Report record for event %s was not saved", event_id)
            result.persistence_error = str(exc)

        assets = await self.image_loader.load_assets(payload)
        loop = asyncio.get_running_loop()
        for fmt in fmts:
            renderer = get_renderer(fmt)
            document = await loop.run_in_executor(None, renderer.build_document, payload, assets)
            logger.info("Rendered %s for event %s (%s bytes)", document.filename, event_id,
                        len(document.content))
            result.documents.append(document)
        return result

    async def list_reports(self, event_id: str) -> List[ReportRecord]:
        return await self.store.list_for_event(event_id)
