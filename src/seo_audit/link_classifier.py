"""Outbound link classification and liveness checking."""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional
from urllib.parse import urldefrag, urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup

from seo_audit.batching import run_in_batches
from seo_audit.constants import (
    SOCIAL_MEDIA_DOMAINS,
    ALWAYS_VALID_LINK_SCHEMES,
    EMAIL_PATTERN,
    DEFAULT_USER_AGENT,
    DEFAULT_LINK_TIMEOUT_SECONDS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_PROBE_BATCH_SIZE,
    DEFAULT_PROBE_BATCH_DELAY_SECONDS,
)
from seo_audit.models import LinkRecord, LinkSummary
from seo_audit.url_normalizer import normalize_for_comparison

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(EMAIL_PATTERN)


@dataclass(frozen=True)
class Anchor:
    """Raw <a href> as found in the document."""

    href: str
    text: str = ""
    target: Optional[str] = None


def anchors_from_soup(soup: BeautifulSoup) -> List[Anchor]:
    """Collect every <a> that carries an href attribute, in document order."""
    return [
        Anchor(
            href=tag.get("href", ""),
            text=tag.get_text().strip(),
            target=tag.get("target"),
        )
        for tag in soup.find_all("a", href=True)
    ]


class LinkClassifier:
    """Partitions a page's anchors into internal and external links.

    Same-page fragment links are dropped. Links to social networks and URL
    shorteners are dropped as well since they are not meaningful external
    SEO links.
    """

    def __init__(self, excluded_domains: Optional[Iterable[str]] = None):
        self.excluded_domains = frozenset(
            d.lower() for d in (excluded_domains if excluded_domains is not None else SOCIAL_MEDIA_DOMAINS)
        )

    def classify(self, anchors: List[Anchor], base_url: str) -> LinkSummary:
        """Classify anchors relative to the page they were found on.

        The average anchor length sums the text of every anchor and divides
        by the number of anchors examined, fragment and unresolvable links
        included.

        Args:
            anchors: Anchors in document order
            base_url: URL of the page

        Returns:
            LinkSummary with internal and external LinkRecords
        """
        summary = LinkSummary()
        total_anchor_length = 0

        base_host = (urlsplit(base_url).hostname or "").lower()
        base_page = normalize_for_comparison(urldefrag(base_url)[0])

        for anchor in anchors:
            total_anchor_length += len(anchor.text)

            if not anchor.href:
                continue

            try:
                resolved = urljoin(base_url, anchor.href)
                page, fragment = urldefrag(resolved)
                host = (urlsplit(resolved).hostname or "").lower()
            except ValueError:
                logger.debug(f"Skipping unparseable href {anchor.href!r} on {base_url}")
                continue

            if anchor.href.endswith("#") or (fragment and normalize_for_comparison(page) == base_page):
                continue

            record = LinkRecord(url=resolved, anchor_text=anchor.text, target=anchor.target)

            if host == base_host:
                summary.internal_links.append(record)
            elif self.is_excluded_host(host):
                continue
            else:
                summary.external_links.append(record)

        if anchors:
            summary.average_anchor_length = round(total_anchor_length / len(anchors))

        return summary

    def is_excluded_host(self, host: str) -> bool:
        """True for a social/shortener domain or one of its subdomains."""
        if not host:
            return False
        return any(host == domain or host.endswith("." + domain) for domain in self.excluded_domains)


class LinkChecker:
    """Annotates links with their HTTP status using HEAD probes."""

    def __init__(
        self,
        timeout: float = DEFAULT_LINK_TIMEOUT_SECONDS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        batch_size: int = DEFAULT_PROBE_BATCH_SIZE,
        batch_delay: float = DEFAULT_PROBE_BATCH_DELAY_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the checker.

        Args:
            timeout: Per-request timeout in seconds
            max_redirects: Redirects followed per probe
            batch_size: Probes in flight at once
            batch_delay: Pause between batches in seconds
            user_agent: User agent for probes
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.user_agent = user_agent
        self.transport = transport

    def check(self, links: List[LinkRecord]) -> List[LinkRecord]:
        """Synchronous entry point; runs the probes on a fresh event loop."""
        return asyncio.run(self.check_async(links))

    async def check_async(self, links: List[LinkRecord]) -> List[LinkRecord]:
        """Probe all links in batches and set status_code / is_broken."""
        if not links:
            return links

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=self.max_redirects,
            headers={"User-Agent": self.user_agent},
            transport=self.transport,
        ) as client:
            async def probe(link: LinkRecord) -> None:
                await self._check_link(client, link)

            await run_in_batches(links, probe, self.batch_size, self.batch_delay)

        return links

    async def _check_link(self, client: httpx.AsyncClient, link: LinkRecord) -> None:
        if link.url.startswith("mailto:"):
            address = link.url[len("mailto:"):].split("?", 1)[0].strip()
            if address and EMAIL_REGEX.match(address):
                link.status_code, link.is_broken = 200, False
            else:
                link.status_code, link.is_broken = 400, True
            return

        if link.url.startswith(ALWAYS_VALID_LINK_SCHEMES):
            link.status_code, link.is_broken = 200, False
            return

        try:
            response = await client.head(link.url)
            link.status_code = response.status_code
            link.is_broken = response.status_code >= 400
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            link.status_code, link.is_broken = 0, True
            logger.debug(f"Link check failed for {link.url}: {e}")
