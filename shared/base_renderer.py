from abc import ABC, abstractmethod

from models import ReportAssets, ReportDocument, ReportPayload
from utils.formatters import report_filename


class ReportRenderer(ABC):
    """Base class for report engines: one payload in, one binary document out"""

    format: str = ''
    extension: str = ''
    media_type: str = 'application/octet-stream'

    @abstractmethod
    def render(self, payload: ReportPayload, assets: ReportAssets) -> bytes:
        """Lay out the payload and return the finished file bytes"""

    def filename(self, payload: ReportPayload) -> str:
        return report_filename(payload.event.title, self.extension)

    def build_document(self, payload: ReportPayload, assets: ReportAssets) -> ReportDocument:
        return ReportDocument(
            format=self.format,
            filename=self.filename(payload),
            content=self.render(payload, assets),
            media_type=self.media_type,
        )
