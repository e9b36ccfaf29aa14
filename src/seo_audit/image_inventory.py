"""Image enumeration and metadata probing."""

import asyncio
import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup

from seo_audit.batching import run_in_batches
from seo_audit.constants import (
    IMAGE_MIME_TYPES,
    UNKNOWN_IMAGE_TYPE,
    UNLIMITED_IMAGES,
    DEFAULT_USER_AGENT,
    DEFAULT_IMAGE_TIMEOUT_SECONDS,
    IMAGE_PROBE_MAX_REDIRECTS,
    DEFAULT_PROBE_BATCH_SIZE,
    DEFAULT_PROBE_BATCH_DELAY_SECONDS,
)
from seo_audit.models import ImageRecord

logger = logging.getLogger(__name__)

DATA_URI_MIME = re.compile(r'^data:([^;,]+)', re.IGNORECASE)


def content_type_from_extension(url: str) -> str:
    """Guess an image MIME type from the URL path's extension."""
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return UNKNOWN_IMAGE_TYPE

    _, dot, extension = path.rpartition('.')
    if not dot or '/' in extension:
        return UNKNOWN_IMAGE_TYPE
    return IMAGE_MIME_TYPES.get(extension, UNKNOWN_IMAGE_TYPE)


def parse_data_uri(uri: str) -> Tuple[str, int]:
    """Return (content_type, estimated_bytes) for a data: URI.

    Size is estimated from the encoded payload with the base64 ratio.
    """
    header, _, payload = uri.partition(',')
    match = DATA_URI_MIME.match(header)
    content_type = match.group(1).strip() if match else UNKNOWN_IMAGE_TYPE
    return content_type, round(len(payload) * 3 / 4)


class ImageInventory:
    """Enumerates <img src> elements and resolves their URLs."""

    def inventory(self, soup: BeautifulSoup, base_url: str, cap: int = UNLIMITED_IMAGES) -> List[ImageRecord]:
        """
        List the page's images in document order.

        Args:
            soup: Parsed page
            base_url: URL the page was fetched from
            cap: Maximum number of images, or UNLIMITED_IMAGES for all

        Returns:
            ImageRecords with content type guessed from the extension
            (data URIs carry their declared type and estimated size)
        """
        records: List[ImageRecord] = []
        elements = soup.find_all('img', src=True)
        if cap != UNLIMITED_IMAGES:
            elements = elements[:max(cap, 0)]

        for index, img in enumerate(elements, start=1):
            src = (img.get('src') or '').strip()
            if not src:
                continue

            alt = img.get('alt') or ''

            if src.startswith('data:'):
                content_type, size = parse_data_uri(src)
                records.append(ImageRecord(
                    image_url=src,
                    image_index=index,
                    content_type=content_type,
                    size_in_bytes=size,
                    alt=alt,
                ))
                continue

            try:
                image_url = urljoin(base_url, src)
                urlsplit(image_url)
            except ValueError:
                logger.debug(f"Skipping image with malformed src {src!r} on {base_url}")
                continue

            records.append(ImageRecord(
                image_url=image_url,
                image_index=index,
                content_type=content_type_from_extension(image_url),
                alt=alt,
            ))

        return records

    def count_images(self, soup: BeautifulSoup) -> int:
        return len(soup.find_all('img', src=True))

    def count_missing_alt(self, soup: BeautifulSoup) -> int:
        """Images with a src and no alt text (absent, empty or whitespace only)."""
        return sum(1 for img in soup.find_all('img', src=True) if not (img.get('alt') or '').strip())


class ImageProbe:
    """Reads size and content type of images from HEAD responses."""

    def __init__(
        self,
        timeout: float = DEFAULT_IMAGE_TIMEOUT_SECONDS,
        max_redirects: int = IMAGE_PROBE_MAX_REDIRECTS,
        batch_size: int = DEFAULT_PROBE_BATCH_SIZE,
        batch_delay: float = DEFAULT_PROBE_BATCH_DELAY_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.user_agent = user_agent
        self.transport = transport

    def probe(self, images: List[ImageRecord]) -> List[ImageRecord]:
        return asyncio.run(self.probe_async(images))

    async def probe_async(self, images: List[ImageRecord]) -> List[ImageRecord]:
        """Update records in place; data URIs are left untouched."""
        targets = [image for image in images if not image.image_url.startswith('data:')]
        if not targets:
            return images

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=self.max_redirects,
            headers={"User-Agent": self.user_agent},
            transport=self.transport,
        ) as client:
            async def probe_one(image: ImageRecord) -> None:
                await self._probe_image(client, image)

            await run_in_batches(targets, probe_one, self.batch_size, self.batch_delay)

        return images

    async def _probe_image(self, client: httpx.AsyncClient, image: ImageRecord) -> None:
        try:
            response = await client.head(image.image_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Could not get size for image {image.image_url}: {e}")
            return

        if response.status_code >= 500:
            logger.warning(f"Image probe for {image.image_url} returned {response.status_code}")
            return

        image.status_code = response.status_code

        content_length = response.headers.get('content-length')
        if content_length:
            try:
                image.size_in_bytes = int(content_length)
            except ValueError:
                logger.debug(f"Ignoring bad content-length {content_length!r} for {image.image_url}")

        content_type = response.headers.get('content-type', '')
        if content_type.startswith('image/'):
            image.content_type = content_type
