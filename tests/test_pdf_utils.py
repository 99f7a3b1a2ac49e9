import time
from concurrent.futures import ThreadPoolExecutor

from utils import pdf_utils


def test_concurrent_font_registration_agrees(monkeypatch):
    monkeypatch.setattr(pdf_utils, '_font_state', {'resolved': False, 'name': None})
    original = pdf_utils._font_candidates
    calls = []

    def slow_candidates():
        calls.append(1)
        time.sleep(0.05)
        return original()

    monkeypatch.setattr(pdf_utils, '_font_candidates', slow_candidates)
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: pdf_utils.register_unicode_font(), range(8)))
    assert len(set(results)) == 1
    assert calls == [1]
    assert pdf_utils._font_state['resolved'] is True


def test_supports_glyphs_without_a_font():
    assert pdf_utils.supports_glyphs(None, "★") is False
