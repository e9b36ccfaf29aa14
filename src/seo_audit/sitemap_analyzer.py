"""Sitemap discovery and recursive URL counting for a domain."""

import logging
import re
from typing import List, Optional, Set
from urllib.parse import urljoin

from seo_audit.constants import (
    DEFAULT_SITEMAP_TIMEOUT_SECONDS,
    DEFAULT_SITEMAP_MAX_DEPTH,
    DEFAULT_MAX_REDIRECTS,
    REDIRECT_STATUS_CODES,
    SITEMAP_ACCEPT_HEADER,
    SITEMAP_TYPE_URLSET,
    SITEMAP_TYPE_INDEX,
    SITEMAP_TYPE_ROBOTS,
)
from seo_audit.fetcher import FetchError, HttpFetcher
from seo_audit.models import SitemapSummary

logger = logging.getLogger(__name__)

LOC_REGEX = re.compile(r'<loc[^>]*>([^<]+)</loc>', re.IGNORECASE)
LASTMOD_REGEX = re.compile(r'<lastmod[^>]*>([^<]+)</lastmod>', re.IGNORECASE)
# <sitemap>/<url> entries, not the <sitemapindex>/<urlset> root elements
SITEMAP_TAG_REGEX = re.compile(r'<sitemap(?:\s[^>]*)?>', re.IGNORECASE)
URL_TAG_REGEX = re.compile(r'<url(?:\s[^>]*)?>', re.IGNORECASE)
ROBOTS_SITEMAP_REGEX = re.compile(r'^sitemap:\s*(.+)$', re.IGNORECASE | re.MULTILINE)

INDEX_MARKERS = ('<sitemapindex', '<sitemap:', 'sitemapindex')
URLSET_MARKERS = ('<urlset', '<url:', 'urlset')


class SitemapFetchError(Exception):
    """A sitemap document is missing, not 200, not XML/text or not a sitemap."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


def classify_sitemap(content: str) -> Optional[str]:
    """Sniff a document for sitemap-index or urlset markers."""
    if any(marker in content for marker in INDEX_MARKERS):
        return SITEMAP_TYPE_INDEX
    if any(marker in content for marker in URLSET_MARKERS):
        return SITEMAP_TYPE_URLSET
    return None


def count_sitemaps_in_index(content: str) -> int:
    return len(SITEMAP_TAG_REGEX.findall(content))


def count_urls_in_sitemap(content: str) -> int:
    return len(URL_TAG_REGEX.findall(content))


def extract_locations(content: str) -> List[str]:
    """All <loc> values in document order."""
    return [loc.strip() for loc in LOC_REGEX.findall(content) if loc.strip()]


def extract_last_modified(content: str) -> Optional[str]:
    match = LASTMOD_REGEX.search(content)
    return match.group(1).strip() if match else None


def extract_sitemaps_from_robots(robots_content: str, domain_url: str) -> List[str]:
    """Sitemap: directives from robots.txt, made absolute against the domain."""
    urls = []
    for match in ROBOTS_SITEMAP_REGEX.finditer(robots_content):
        location = match.group(1).strip()
        if not location:
            continue
        if not location.lower().startswith('http'):
            location = urljoin(domain_url.rstrip('/') + '/', location)
        urls.append(location)
    return urls


class SitemapAnalyzer:
    """
    Walk a domain's sitemap tree.

    Starts at {domain}/sitemap.xml (after following redirects by hand), then
    recurses through sitemap indexes bounded by a depth limit and a visited
    set. If the root sitemap cannot be read, sitemaps listed in robots.txt
    are used instead.
    """

    def __init__(
        self,
        fetcher: Optional[HttpFetcher] = None,
        max_depth: int = DEFAULT_SITEMAP_MAX_DEPTH,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
    ):
        """
        Initialize the analyzer.

        Args:
            fetcher: HTTP fetcher (a default HttpFetcher is created if omitted)
            max_depth: Maximum sitemap-index nesting followed
            max_redirects: Redirects followed when resolving the root sitemap
        """
        self.fetcher = fetcher or HttpFetcher()
        self.max_depth = max_depth
        self.max_redirects = max_redirects

    def follow_redirects(self, url: str, timeout: float = DEFAULT_SITEMAP_TIMEOUT_SECONDS) -> str:
        """
        Resolve the final sitemap location by issuing HEAD requests.

        Each redirect hop is followed explicitly so the canonical URL is
        known. Any non-redirect answer or failure stops the walk at the
        current URL.
        """
        current = url
        for _ in range(self.max_redirects):
            try:
                response = self.fetcher.fetch(
                    current,
                    timeout=timeout,
                    allow_redirects=False,
                    method="HEAD",
                    headers={"Accept": SITEMAP_ACCEPT_HEADER},
                )
            except FetchError as e:
                logger.debug(f"HEAD {current} failed while following redirects: {e}")
                return current

            if response.status_code not in REDIRECT_STATUS_CODES:
                return current

            location = response.header("location")
            if not location:
                return current

            logger.debug(f"Sitemap redirect {response.status_code}: {current} -> {location}")
            current = urljoin(current, location)

        return current

    def fetch_sitemap(self, url: str, timeout: float = DEFAULT_SITEMAP_TIMEOUT_SECONDS) -> str:
        """
        Fetch a sitemap document.

        Raises:
            SitemapFetchError: Non-200 status or a content type that is
                neither XML nor text
            FetchError: Transport failure
        """
        response = self.fetcher.fetch(url, timeout=timeout, headers={"Accept": SITEMAP_ACCEPT_HEADER})

        if response.status_code != 200:
            raise SitemapFetchError(
                f"Sitemap {url} returned status {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        content_type = response.header("content-type").lower()
        if 'xml' not in content_type and 'text' not in content_type:
            raise SitemapFetchError(
                f"Sitemap {url} has unexpected content type {content_type!r}",
                url=url,
                status_code=response.status_code,
            )

        return response.body

    def count_total_urls(
        self,
        sitemap_url: str,
        timeout: float = DEFAULT_SITEMAP_TIMEOUT_SECONDS,
        max_depth: Optional[int] = None,
        visited: Optional[Set[str]] = None,
    ) -> int:
        """
        Count page URLs reachable from a sitemap, recursing through indexes.

        Args:
            sitemap_url: Sitemap or sitemap index to start from
            timeout: Per-request timeout
            max_depth: Remaining nesting budget; 0 stops the walk
            visited: Sitemap URLs already counted, shared across the walk

        Returns:
            Total URLs; a sitemap that cannot be fetched contributes 0
        """
        if max_depth is None:
            max_depth = self.max_depth
        if visited is None:
            visited = set()

        if max_depth <= 0 or sitemap_url in visited:
            return 0
        visited.add(sitemap_url)

        try:
            content = self.fetch_sitemap(sitemap_url, timeout)
        except (FetchError, SitemapFetchError) as e:
            logger.warning(f"Failed to fetch sitemap {sitemap_url}: {e}")
            return 0

        kind = classify_sitemap(content)
        if kind == SITEMAP_TYPE_URLSET:
            return count_urls_in_sitemap(content)
        if kind != SITEMAP_TYPE_INDEX:
            return 0

        total = 0
        for child_url in extract_locations(content):
            total += self.count_total_urls(child_url, timeout, max_depth - 1, visited)
        return total

    def analyze_domain_sitemaps(
        self, domain_url: str, timeout: float = DEFAULT_SITEMAP_TIMEOUT_SECONDS
    ) -> SitemapSummary:
        """
        Summarize the sitemaps of a domain.

        Args:
            domain_url: Origin of the site, e.g. https://example.com
            timeout: Per-request timeout; robots.txt fallback uses half

        Returns:
            SitemapSummary (never raises)
        """
        domain_url = domain_url.rstrip('/')
        summary = SitemapSummary(domain=domain_url)

        root_url = f"{domain_url}/sitemap.xml"
        summary.sitemap_url = root_url

        try:
            final_url = self.follow_redirects(root_url, timeout)
            summary.sitemap_url = final_url
            content = self.fetch_sitemap(final_url, timeout)
            kind = classify_sitemap(content)
            if kind is None:
                # soft 404s answer 200 with an HTML page
                raise SitemapFetchError(
                    f"{final_url} is neither a sitemap index nor a urlset", url=final_url
                )
        except (FetchError, SitemapFetchError) as e:
            logger.info(f"No sitemap at {root_url} ({e}); checking robots.txt")
            summary.error = str(e)
            self._apply_robots_fallback(summary, domain_url, timeout)
            return summary

        summary.has_sitemap = True
        summary.sitemap_type = kind
        summary.sitemap_urls = extract_locations(content)

        if kind == SITEMAP_TYPE_INDEX:
            summary.sitemap_size = count_sitemaps_in_index(content)
            logger.info(f"Counting total URLs across {len(summary.sitemap_urls)} sitemaps...")
            visited = {final_url}
            summary.total_urls = sum(
                self.count_total_urls(url, timeout, self.max_depth - 1, visited)
                for url in summary.sitemap_urls
            )
            logger.info(f"Total URLs found: {summary.total_urls}")
        else:
            summary.sitemap_size = count_urls_in_sitemap(content)
            summary.sitemap_last_modified = extract_last_modified(content)
            summary.total_urls = summary.sitemap_size

        return summary

    def _apply_robots_fallback(self, summary: SitemapSummary, domain_url: str, timeout: float) -> None:
        robots_url = f"{domain_url}/robots.txt"
        try:
            response = self.fetcher.fetch(robots_url, timeout=timeout / 2)
            if response.status_code != 200:
                raise SitemapFetchError(
                    f"robots.txt returned status {response.status_code}",
                    url=robots_url,
                    status_code=response.status_code,
                )
        except (FetchError, SitemapFetchError) as e:
            logger.info(f"robots.txt unavailable for {domain_url}: {e}")
            summary.error = f"{summary.error}; robots.txt: {e}"
            return

        sitemap_urls = extract_sitemaps_from_robots(response.body, domain_url)
        if not sitemap_urls:
            return

        summary.sitemap_url = sitemap_urls[0]
        summary.has_sitemap = True
        summary.sitemap_type = SITEMAP_TYPE_ROBOTS
        summary.sitemap_urls = sitemap_urls
        summary.error = None

        logger.info(f"Counting total URLs across {len(sitemap_urls)} sitemaps from robots.txt...")
        visited: Set[str] = set()
        summary.total_urls = sum(
            self.count_total_urls(url, timeout / 2, self.max_depth, visited) for url in sitemap_urls
        )
        logger.info(f"Total URLs found: {summary.total_urls}")
