"""
Services package for the alumni event report service
"""
from models import UnsupportedFormatError
from shared.base_renderer import ReportRenderer

from .pdf_service import PdfReportRenderer
from .docx_service import DocxReportRenderer

# Output format -> layout engine; insertion order is the order of 'both'
RENDERERS = {
    PdfReportRenderer.format: PdfReportRenderer,
    DocxReportRenderer.format: DocxReportRenderer,
}


def get_renderer(fmt: str) -> ReportRenderer:
    renderer_class = RENDERERS.get(str(fmt).strip().lower())
    if renderer_class is None:
        raise UnsupportedFormatError(f"Unsupported report format: {fmt!r}")
    return renderer_class()


# Imported last: the workflow module reads the registry above
from .api_service import AlumniApiService  # noqa: E402
from .image_loader import ImageLoader  # noqa: E402
from .report_store import ReportStore, RestReportStore, SqlReportStore, get_report_store  # noqa: E402
from .report_service import ReportService, resolve_formats  # noqa: E402

__all__ = [
    'RENDERERS',
    'get_renderer',
    'PdfReportRenderer',
    'DocxReportRenderer',
    'AlumniApiService',
    'ImageLoader',
    'ReportStore',
    'RestReportStore',
    'SqlReportStore',
    'get_report_store',
    'ReportService',
    'resolve_formats',
]
