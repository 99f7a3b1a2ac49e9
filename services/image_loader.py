"""
Image loader: resolves photo, logo and signature references into JPEG bytes
ready for embedding, together with their natural pixel size.
"""
import asyncio
import base64
import logging
from io import BytesIO
from typing import List, Optional, Sequence
from urllib.parse import unquote_to_bytes, urlparse

import httpx
from PIL import Image

from config import IMAGE_CONFIG
from models import Branding, LoadedImage, ReportAssets, ReportPayload

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5


def decode_data_url(ref: str) -> bytes:
    """Return the bytes carried by a data: URL."""
    header, _, body = ref.partition(',')
    if not header.startswith('data:') or not body:
        raise ValueError("malformed data URL")
    if header.endswith(';base64'):
        return base64.b64decode(body, validate=False)
    return unquote_to_bytes(body)


def reencode_image(raw: bytes, quality: int) -> LoadedImage:
    """Decode any Pillow-readable image and re-encode it as RGB JPEG."""
    with Image.open(BytesIO(raw)) as source:
        source.load()
        width, height = source.size
        if source.mode in ('RGBA', 'LA') or (source.mode == 'P' and 'transparency' in source.info):
            rgba = source.convert('RGBA')
            flattened = Image.new('RGB', rgba.size, (255, 255, 255))
            flattened.paste(rgba, mask=rgba.split()[-1])
        else:
            flattened = source.convert('RGB')
    output = BytesIO()
    flattened.save(output, format='JPEG', quality=quality)
    return LoadedImage(data=output.getvalue(), width=width, height=height)


class ImageLoader:
    """Fetch and normalize images; every failure yields None instead of raising.

    No cache is kept: loading the same reference twice fetches it twice.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None,
                 quality: Optional[int] = None,
                 allowed_hosts: Optional[Sequence[str]] = None,
                 max_bytes: Optional[int] = None):
        self._client = client
        self.quality = quality if quality is not None else IMAGE_CONFIG['jpeg_quality']
        hosts = IMAGE_CONFIG['allowed_hosts'] if allowed_hosts is None else allowed_hosts
        self.allowed_hosts = [host.lower() for host in hosts]
        self.max_bytes = max_bytes if max_bytes is not None else IMAGE_CONFIG['max_bytes']

    def _host_allowed(self, url: str) -> bool:
        if not self.allowed_hosts:
            return True
        host = (urlparse(url).hostname or '').lower()
        return any(host == allowed or host.endswith('.' + allowed) for allowed in self.allowed_hosts)

    async def _fetch(self, url: str) -> Optional[bytes]:
        if self._client is not None:
            return await self._fetch_with(self._client, url)
        timeout = httpx.Timeout(IMAGE_CONFIG['timeout'], connect=10)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await self._fetch_with(client, url)

    async def _fetch_with(self, client: httpx.AsyncClient, url: str) -> Optional[bytes]:
        """Follow redirects one hop at a time so every host passes the allow-list,
        and stop reading once the body is larger than max_bytes."""
        for _ in range(MAX_REDIRECTS + 1):
            if not self._host_allowed(url):
                logger.warning("Image host not allowed: %s", url)
                return None
            async with client.stream('GET', url, follow_redirects=False) as response:
                if response.is_redirect:
                    url = str(response.url.join(response.headers['location']))
                    continue
                if response.status_code != 200:
                    logger.warning("Image fetch returned status %s: %s", response.status_code, url)
                    return None
                declared = response.headers.get('content-length', '')
                if declared.isdigit() and int(declared) > self.max_bytes:
                    logger.warning("Image larger than %s bytes skipped: %s", self.max_bytes, url)
                    return None
                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self.max_bytes:
                        logger.warning("Image larger than %s bytes skipped: %s", self.max_bytes, url)
                        return None
                return bytes(body)
        logger.warning("Too many redirects fetching image: %s", url)
        return None

    async def load_image(self, ref: Optional[str]) -> Optional[LoadedImage]:
        if not ref or not isinstance(ref, str):
            return None
        ref = ref.strip()
        label = ref[:60] + ('...' if len(ref) > 60 else '')
        try:
            if ref.startswith('data:'):
                raw = decode_data_url(ref)
            elif ref.startswith(('http://', 'https://')):
                raw = await self._fetch(ref)
            else:
                logger.warning("Unsupported image reference: %s", label)
                return None
            if not raw:
                return None
            if len(raw) > self.max_bytes:
                logger.warning("Image larger than %s bytes skipped: %s", self.max_bytes, label)
                return None
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, reencode_image, raw, self.quality)
        except httpx.HTTPError as exc:
            logger.warning("Image fetch failed for %s: %s", label, exc)
        except Exception as exc:
            logger.warning("Image decode failed for %s: %s", label, exc)
        return None

    async def load_images(self, refs: Sequence[Optional[str]]) -> List[Optional[LoadedImage]]:
        """Load concurrently; results keep the order of refs."""
        if not refs:
            return []
        return list(await asyncio.gather(*(self.load_image(ref) for ref in refs)))

    async def load_assets(self, payload: ReportPayload) -> ReportAssets:
        branding: Branding = payload.branding
        slots = [getattr(branding, slot) for slot in Branding.SLOTS]
        loaded = await self.load_images(slots + list(payload.photos))
        logos, photos = loaded[:len(slots)], loaded[len(slots):]
        skipped = sum(1 for photo in photos if photo is None)
        if skipped:
            logger.info("%s of %s photos could not be loaded and are omitted", skipped, len(photos))
        return ReportAssets(
            college_logo=logos[0],
            department_logo=logos[1],
            coordinator_signature=logos[2],
            approver_signature=logos[3],
            photos=tuple(photo for photo in photos if photo is not None),
        )
