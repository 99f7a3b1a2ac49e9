"""
Event report API routes
"""
import logging
import zipfile
from dataclasses import asdict
from io import BytesIO
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from models import (
    Branding,
    DataServiceError,
    EventNotFoundError,
    GenerationResult,
    ReportFormData,
    ReportValidationError,
    UnsupportedFormatError,
)
from services import ReportService
from utils.auth import get_current_user, require_report_author

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["reports"])

_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    global _report_service
    if _report_service is None:
        _report_service = ReportService()
    return _report_service


class BrandingRequest(BaseModel):
    college_logo: Optional[str] = None
    department_logo: Optional[str] = None
    coordinator_signature: Optional[str] = None
    approver_signature: Optional[str] = None


class ReportRequest(BaseModel):
    format: str = "pdf"
    form: Dict[str, Any] = Field(default_factory=dict)
    uploaded_photos: List[str] = Field(default_factory=list)
    branding: Optional[BrandingRequest] = None


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def _result_headers(result: GenerationResult, filename: str) -> Dict[str, str]:
    return {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "X-Report-Record-Id": result.record_id or "",
        "X-Report-Persistence": "saved" if result.persisted else "failed",
    }


@router.post("/{event_id}/report")
async def generate_event_report(
    event_id: str,
    body: ReportRequest,
    user: Dict[str, Any] = Depends(require_report_author),
    service: ReportService = Depends(get_report_service),
):
    """Generate the event report as PDF, DOCX, or a zip holding both."""
    branding = Branding(**body.branding.model_dump()) if body.branding else None
    try:
        result = await service.generate(
            event_id,
            ReportFormData.from_dict(body.form),
            formats=body.format,
            uploaded_photos=body.uploaded_photos,
            branding=branding,
            user=user,
        )
    except ReportValidationError as e:
        return _error(422, e.messages[0], missing=e.missing, messages=e.messages)
    except UnsupportedFormatError as e:
        return _error(400, str(e))
    except EventNotFoundError as e:
        return _error(404, str(e))
    except DataServiceError as e:
        logger.error("Report for event %s aborted: %s", event_id, e)
        return _error(502, "Event data could not be loaded")

    if len(result.documents) == 1:
        document = result.documents[0]
        return Response(
            content=document.content,
            media_type=document.media_type,
            headers=_result_headers(result, document.filename),
        )

    buffer = BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zf:
        for document in result.documents:
            zf.writestr(document.filename, document.content)
    filename = result.documents[0].filename.rsplit('.', 1)[0] + '.zip'
    return Response(
        content=buffer.getvalue(),
        media_type='application/zip',
        headers=_result_headers(result, filename),
    )


@router.get("/{event_id}/reports")
async def list_event_reports(
    event_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """Report records generated for the event, newest first."""
    try:
        records = await service.list_reports(event_id)
    except DataServiceError as e:
        logger.error("Report history for event %s unavailable: %s", event_id, e)
        return _error(502, "Report history could not be loaded")
    return {"success": True, "data": [asdict(record) for record in records]}
