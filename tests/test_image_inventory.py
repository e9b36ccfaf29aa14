"""Tests for the image inventory and metadata probe."""

import httpx
import pytest
from bs4 import BeautifulSoup

from seo_audit.constants import UNLIMITED_IMAGES
from seo_audit.image_inventory import (
    ImageInventory,
    ImageProbe,
    content_type_from_extension,
    parse_data_uri,
)
from seo_audit.models import ImageRecord


HTML = """
<body>
  <img src="https://cdn.example.com/hero.JPG" alt="Hero">
  <img src="/img/logo.svg">
  <img src="thumbs/a.webp" alt="">
  <img alt="no source">
  <img src="data:image/png;base64,AAAABBBB" alt="dot">
  <img src="/download?id=7" alt="dynamic">
</body>
"""


class TestImageInventory:
    """Test suite for ImageInventory."""

    @pytest.fixture
    def soup(self):
        return BeautifulSoup(HTML, "html.parser")

    @pytest.fixture
    def inventory(self):
        return ImageInventory()

    def test_resolves_urls_in_document_order(self, inventory, soup):
        images = inventory.inventory(soup, "https://example.com/blog/post", UNLIMITED_IMAGES)

        assert [image.image_url for image in images[:3]] == [
            "https://cdn.example.com/hero.JPG",
            "https://example.com/img/logo.svg",
            "https://example.com/blog/thumbs/a.webp",
        ]
        assert [image.image_index for image in images] == [1, 2, 3, 4, 5]

    def test_content_type_from_extension(self, inventory, soup):
        images = inventory.inventory(soup, "https://example.com/", UNLIMITED_IMAGES)

        assert images[0].content_type == "image/jpeg"
        assert images[1].content_type == "image/svg+xml"
        assert images[2].content_type == "image/webp"
        assert images[4].content_type == "unknown"

    def test_data_uri(self, inventory, soup):
        images = inventory.inventory(soup, "https://example.com/", UNLIMITED_IMAGES)
        data_image = images[3]

        assert data_image.content_type == "image/png"
        assert data_image.size_in_bytes == 6  # 8 encoded chars * 3/4
        assert data_image.alt == "dot"

    def test_cap(self, inventory, soup):
        images = inventory.inventory(soup, "https://example.com/", 2)
        assert len(images) == 2

    def test_cap_zero(self, inventory, soup):
        assert inventory.inventory(soup, "https://example.com/", 0) == []

    def test_count_missing_alt(self, inventory, soup):
        # logo.svg has no alt, a.webp has an empty one
        assert inventory.count_missing_alt(soup) == 2

    def test_whitespace_alt_counts_as_missing(self, inventory):
        soup = BeautifulSoup('<img src="/a.png" alt="   "><img src="/b.png" alt="ok">', "html.parser")
        assert inventory.count_missing_alt(soup) == 1

    def test_malformed_src_is_skipped(self, inventory):
        soup = BeautifulSoup('<img src="http://[broken/x.png"><img src="/ok.png">', "html.parser")
        images = inventory.inventory(soup, "https://example.com/", UNLIMITED_IMAGES)
        assert [image.image_url for image in images] == ["https://example.com/ok.png"]
        # the index keeps the position among <img src> elements
        assert images[0].image_index == 2

    @pytest.mark.parametrize("url,expected", [
        ("https://a.com/x.jpeg", "image/jpeg"),
        ("https://a.com/x.tif?v=2", "image/tiff"),
        ("https://a.com/x.avif", "image/avif"),
        ("https://a.com/x.ico", "image/x-icon"),
        ("https://a.com/x.psd", "unknown"),
        ("https://a.com/image", "unknown"),
        ("https://a.com/v1.2/image", "unknown"),
    ])
    def test_extension_table(self, url, expected):
        assert content_type_from_extension(url) == expected

    def test_parse_data_uri_without_mime(self):
        assert parse_data_uri("data:,hello") == ("unknown", 4)


class TestImageProbe:
    """Test suite for ImageProbe using a mock transport."""

    @pytest.fixture
    def transport(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/photo.jpg":
                return httpx.Response(200, headers={"content-length": "2500", "content-type": "image/webp"})
            if request.url.path == "/page.png":
                return httpx.Response(200, headers={"content-length": "100", "content-type": "text/html"})
            raise httpx.ConnectTimeout("timed out", request=request)

        return httpx.MockTransport(handler)

    @pytest.mark.asyncio
    async def test_probe_updates_size_and_type(self, transport):
        probe = ImageProbe(batch_delay=0, transport=transport)
        images = [
            ImageRecord(image_url="https://example.com/photo.jpg", image_index=1, content_type="image/jpeg"),
            ImageRecord(image_url="https://example.com/page.png", image_index=2, content_type="image/png"),
        ]

        await probe.probe_async(images)

        assert images[0].size_in_bytes == 2500
        assert images[0].size_in_kb == 2.5
        assert images[0].content_type == "image/webp"
        assert images[0].status_code == 200
        # non-image content type keeps the extension guess
        assert images[1].content_type == "image/png"
        assert images[1].size_in_bytes == 100

    @pytest.mark.asyncio
    async def test_probe_failure_keeps_extension_data(self, transport):
        probe = ImageProbe(batch_delay=0, transport=transport)
        images = [ImageRecord(image_url="https://example.com/slow.gif", image_index=1, content_type="image/gif")]

        await probe.probe_async(images)

        assert images[0].content_type == "image/gif"
        assert images[0].size_in_bytes == 0

    def test_data_uris_are_not_probed(self):
        def handler(request):
            raise AssertionError("data URI must not be requested")

        probe = ImageProbe(batch_delay=0, transport=httpx.MockTransport(handler))
        images = [ImageRecord(image_url="data:image/gif;base64,R0lG", image_index=1, size_in_bytes=3)]

        assert probe.probe(images)[0].size_in_bytes == 3
