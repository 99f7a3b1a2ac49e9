from io import BytesIO

import pytest
from docx import Document

from models import (
    Branding,
    EventNotFoundError,
    ReportAssets,
    ReportValidationError,
    UnsupportedFormatError,
)
from services import get_renderer, report_service
from services.docx_service import DocxReportRenderer
from services.image_loader import ImageLoader
from services.pdf_service import PdfReportRenderer
from services.report_service import ReportService, resolve_formats
from utils.formatters import EMPTY_STAR, FILLED_STAR, star_rating
from utils.pdf_utils import register_unicode_font, supports_glyphs

from conftest import (
    GENERATED_AT,
    FakeAlumniApi,
    FakeReportStore,
    data_url,
    event_record,
    make_form,
    make_image_bytes,
    make_recording_canvas,
)


def make_service(api=None, store=None):
    return ReportService(
        api=api or FakeAlumniApi(),
        store=store or FakeReportStore(),
        image_loader=ImageLoader(allowed_hosts=[]),
        clock=lambda: GENERATED_AT,
    )


def test_resolve_formats():
    assert resolve_formats('pdf') == ['pdf']
    assert resolve_formats('both') == ['pdf', 'docx']
    assert resolve_formats(['DOCX', 'both', 'pdf']) == ['docx', 'pdf']
    with pytest.raises(UnsupportedFormatError):
        resolve_formats('xlsx')
    with pytest.raises(UnsupportedFormatError):
        resolve_formats('')


def test_get_renderer():
    assert isinstance(get_renderer('pdf'), PdfReportRenderer)
    assert isinstance(get_renderer('DOCX'), DocxReportRenderer)
    with pytest.raises(UnsupportedFormatError):
        get_renderer('html')


async def test_both_formats_persist_exactly_once():
    store = FakeReportStore()
    result = await make_service(store=store).generate('evt-1', make_form(), 'both', user={'id': 'u-1'})
    assert len(store.saved) == 1
    assert store.saved[0].generated_by == 'u-1'
    assert result.record_id == 'rec-1'
    assert result.persisted
    assert [d.filename for d in result.documents] == ['AI_Workshop_2024_report.pdf', 'AI_Workshop_2024_report.docx']
    assert result.documents[0].content.startswith(b'%PDF')


async def test_each_request_appends_a_new_record():
    store = FakeReportStore()
    service = make_service(store=store)
    await service.generate('evt-1', make_form(), 'pdf')
    await service.generate('evt-1', make_form(outcomes='Revised'), 'docx')
    assert len(store.saved) == 2
    history = await service.list_reports('evt-1')
    assert history[0].outcomes == 'Revised'


async def test_persistence_failure_is_reported_and_generation_continues():
    result = await make_service(store=FakeReportStore(fail=True)).generate('evt-1', make_form(), 'pdf')
    assert result.record_id is None
    assert not result.persisted
    assert 'database unavailable' in result.persistence_error
    assert len(result.documents) == 1
    assert result.to_dict()['persisted'] is False


async def test_validation_failure_touches_nothing():
    api, store = FakeAlumniApi(), FakeReportStore()
    with pytest.raises(ReportValidationError) as info:
        await make_service(api, store).generate('evt-1', {'event_summary': 'only this'}, 'pdf')
    assert 'outcomes' in info.value.missing
    assert api.calls == []
    assert store.saved == []


async def test_unknown_event():
    store = FakeReportStore()
    with pytest.raises(EventNotFoundError):
        await make_service(FakeAlumniApi(missing=True), store).generate('evt-x', make_form(), 'pdf')
    assert store.saved == []


async def test_uploaded_and_stored_photos_are_rendered():
    photo = data_url(make_image_bytes())
    api = FakeAlumniApi(photos=[photo])
    result = await make_service(api).generate(
        'evt-1', make_form(), 'docx', uploaded_photos=[photo, 'not-a-reference'],
    )
    document = Document(BytesIO(result.documents[0].content))
    assert len(document.inline_shapes) == 2


async def test_department_logo_defaults_to_event_department(monkeypatch):
    captured = {}
    service = make_service(FakeAlumniApi(event=event_record(
        departments={'name': 'Physics', 'logo_url': 'https://cdn.test/physics.png'})))

    async def fake_load_assets(payload):
        captured['branding'] = payload.branding
        return ReportAssets()

    monkeypatch.setattr(service.image_loader, 'load_assets', fake_load_assets)
    await service.generate('evt-1', make_form(), 'pdf', branding=Branding(college_logo='data:x'))
    assert captured['branding'].department_logo == 'https://cdn.test/physics.png'
    assert captured['branding'].college_logo == 'data:x'


async def test_workshop_report_end_to_end(monkeypatch):
    canvas_class, records = make_recording_canvas()
    monkeypatch.setattr(report_service, 'get_renderer', lambda fmt: PdfReportRenderer(canvas_class=canvas_class))
    photos = [data_url(make_image_bytes(size=(60, 40))), data_url(make_image_bytes(size=(30, 50)))]
    store = FakeReportStore()
    result = await make_service(FakeAlumniApi(photos=photos), store).generate(
        'evt-1', make_form(overall_rating=6), 'pdf',
    )
    document = result.documents[0]
    assert document.filename == 'AI_Workshop_2024_report.pdf'
    assert document.content.startswith(b'%PDF')
    drawn = [text for _, text in records['text']]
    glyphs = supports_glyphs(register_unicode_font(), FILLED_STAR + EMPTY_STAR)
    assert star_rating(5, glyphs=glyphs) in drawn
    if glyphs:
        assert "★★★★★ (5/5)" in drawn
    assert "AI Workshop 2024" in drawn
    assert len(records['images']) == 2
    assert store.saved[0].overall_rating == 5
