from io import BytesIO
from urllib.parse import quote_from_bytes

import httpx
import pytest
from PIL import Image

from models import Branding
from services.image_loader import ImageLoader, decode_data_url

from conftest import data_url, make_image_bytes, make_payload


def mock_client(png: bytes) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith('/ok'):
            return httpx.Response(200, content=png, headers={'content-type': 'image/png'})
        if path == '/text':
            return httpx.Response(200, content=b'not an image')
        if path == '/down':
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(404)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_data_url_is_reencoded_as_jpeg(png_bytes):
    image = await ImageLoader(allowed_hosts=[]).load_image(data_url(png_bytes))
    assert image is not None
    assert (image.width, image.height) == (40, 30)
    assert image.data[:2] == b'\xff\xd8'
    assert Image.open(BytesIO(image.data)).mode == 'RGB'


async def test_transparent_png_is_flattened():
    raw = make_image_bytes(mode='RGBA', color=(0, 0, 255))
    image = await ImageLoader(allowed_hosts=[]).load_image(data_url(raw))
    assert image is not None
    assert Image.open(BytesIO(image.data)).mode == 'RGB'


def test_percent_encoded_data_url(png_bytes):
    ref = "data:image/png," + quote_from_bytes(png_bytes)
    assert decode_data_url(ref) == png_bytes


async def test_remote_fetch_success_and_failures(png_bytes):
    async with mock_client(png_bytes) as client:
        loader = ImageLoader(client=client, allowed_hosts=[])
        assert await loader.load_image("https://cdn.test/ok.png") is not None
        assert await loader.load_image("https://cdn.test/missing.png") is None
        assert await loader.load_image("https://cdn.test/down") is None
        assert await loader.load_image("https://cdn.test/text") is None


@pytest.mark.parametrize("ref", [None, "", "   ", "ftp://host/a.png", "data:image/png;base64,", "data:image/png;base64,@@@@"])
async def test_unusable_references_yield_none(ref):
    assert await ImageLoader(allowed_hosts=[]).load_image(ref) is None


async def test_host_allow_list(png_bytes):
    async with mock_client(png_bytes) as client:
        loader = ImageLoader(client=client, allowed_hosts=['storage.test'])
        assert await loader.load_image("https://img.storage.test/ok.png") is not None
        assert await loader.load_image("https://evil.test/ok.png") is None


async def test_oversized_image_is_skipped(png_bytes):
    loader = ImageLoader(allowed_hosts=[], max_bytes=10)
    assert await loader.load_image(data_url(png_bytes)) is None


async def test_load_images_keeps_source_order():
    small = data_url(make_image_bytes(size=(10, 10)))
    wide = data_url(make_image_bytes(size=(60, 20)))
    results = await ImageLoader(allowed_hosts=[]).load_images([wide, "bogus", small])
    assert results[1] is None
    assert (results[0].width, results[2].width) == (60, 10)


async def test_load_assets_drops_failed_photos_and_branding(png_bytes):
    good = data_url(png_bytes)
    payload = make_payload(
        photos=[good, "https://nowhere.invalid/x.png", good],
        branding=Branding(college_logo=good, department_logo="data:image/png;base64,AAAA"),
    )
    async with mock_client(png_bytes) as client:
        assets = await ImageLoader(client=client, allowed_hosts=[]).load_assets(payload)
    assert assets.college_logo is not None
    assert assets.department_logo is None
    assert assets.coordinator_signature is None
    assert len(assets.photos) == 2


def redirecting_client(png: bytes, produced: list) -> httpx.AsyncClient:
    async def endless_body():
        for _ in range(10_000):
            produced.append(1)
            yield b'\x00' * 1024

    def handler(request: httpx.Request) -> httpx.Response:
        host, path = request.url.host, request.url.path
        if path == '/elsewhere':
            return httpx.Response(302, headers={'location': 'https://evil.test/ok.png'})
        if path == '/moved':
            return httpx.Response(301, headers={'location': '/ok.png'})
        if path == '/loop':
            return httpx.Response(302, headers={'location': '/loop'})
        if path == '/endless':
            return httpx.Response(200, content=endless_body())
        if path == '/ok.png' and host != 'evil.test':
            return httpx.Response(200, content=png)
        if host == 'evil.test':
            produced.append('evil')
            return httpx.Response(200, content=png)
        return httpx.Response(404)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_redirect_to_unlisted_host_is_refused(png_bytes):
    produced = []
    async with redirecting_client(png_bytes, produced) as client:
        loader = ImageLoader(client=client, allowed_hosts=['storage.test'])
        assert await loader.load_image("https://storage.test/elsewhere") is None
        assert await loader.load_image("https://storage.test/moved") is not None
        assert await loader.load_image("https://storage.test/loop") is None
    assert 'evil' not in produced


async def test_body_is_cut_off_at_byte_cap(png_bytes):
    produced = []
    async with redirecting_client(png_bytes, produced) as client:
        loader = ImageLoader(client=client, allowed_hosts=[], max_bytes=8 * 1024)
        assert await loader.load_image("https://storage.test/endless") is None
    assert 0 < len(produced) < 20


async def test_declared_length_over_cap_is_skipped(png_bytes):
    async with mock_client(png_bytes) as client:
        loader = ImageLoader(client=client, allowed_hosts=[], max_bytes=len(png_bytes) - 1)
        assert await loader.load_image("https://cdn.test/ok.png") is None
