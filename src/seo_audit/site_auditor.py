"""Breadth-first site audit: fetch, analyze and score pages, then aggregate."""

import logging
from collections import deque
from typing import Deque, List, Optional, Set
from urllib.parse import urlsplit

from seo_audit.aggregator import DomainAggregator
from seo_audit.certificate import CertificateProbe
from seo_audit.config import AuditConfig, ScoringThresholds
from seo_audit.fetcher import FetchError, HttpFetcher
from seo_audit.image_inventory import ImageProbe
from seo_audit.link_classifier import LinkChecker
from seo_audit.models import AuditReport, CertificateInfo, PageResult, SitemapSummary
from seo_audit.page_analyzer import PageAnalyzer
from seo_audit.scorer import SEOScorer
from seo_audit.sitemap_analyzer import SitemapAnalyzer
from seo_audit.url_normalizer import URLNormalizer

logger = logging.getLogger(__name__)


def origin_of(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


class SiteAuditor:
    """
    Audits a site starting from one or more URLs.

    Pages are processed one at a time from a FIFO queue until the page
    budget (counting successfully analyzed pages) is used up. A page that
    cannot be fetched becomes an error result and the crawl continues.
    """

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        fetcher: Optional[HttpFetcher] = None,
        analyzer: Optional[PageAnalyzer] = None,
        scorer: Optional[SEOScorer] = None,
        sitemap_analyzer: Optional[SitemapAnalyzer] = None,
        certificate_probe: Optional[CertificateProbe] = None,
        aggregator: Optional[DomainAggregator] = None,
        thresholds: Optional[ScoringThresholds] = None,
    ):
        """
        Initialize the auditor. Collaborators not given are built from config.

        Args:
            config: Audit configuration
            fetcher: Page fetcher
            analyzer: Page analyzer
            scorer: Page scorer
            sitemap_analyzer: Sitemap walker
            certificate_probe: TLS certificate probe
            aggregator: Domain aggregator
            thresholds: Scoring thresholds for the default scorer
        """
        self.config = config or AuditConfig()
        cfg = self.config

        self.fetcher = fetcher or HttpFetcher(user_agent=cfg.user_agent, max_redirects=cfg.max_redirects)
        self.analyzer = analyzer or PageAnalyzer(
            config=cfg,
            link_checker=LinkChecker(
                timeout=cfg.link_timeout,
                max_redirects=cfg.max_redirects,
                batch_size=cfg.probe_batch_size,
                batch_delay=cfg.probe_batch_delay,
                user_agent=cfg.user_agent,
            ),
            image_probe=ImageProbe(
                timeout=cfg.image_timeout,
                batch_size=cfg.probe_batch_size,
                batch_delay=cfg.probe_batch_delay,
                user_agent=cfg.user_agent,
            ),
        )
        self.scorer = scorer or SEOScorer(thresholds)
        self.sitemap_analyzer = sitemap_analyzer or SitemapAnalyzer(
            self.fetcher, max_depth=cfg.sitemap_max_depth, max_redirects=cfg.max_redirects
        )
        self.certificate_probe = certificate_probe or CertificateProbe(timeout=cfg.certificate_timeout)
        self.aggregator = aggregator or DomainAggregator()
        self.normalizer = URLNormalizer()

    def audit(self, start_urls: List[str]) -> AuditReport:
        """
        Run a full audit.

        Args:
            start_urls: URLs to start from; the first one defines the domain

        Returns:
            AuditReport with per-page results and the domain summary

        Raises:
            ValueError: If no start URL is given
        """
        if not start_urls:
            raise ValueError("At least one start URL is required")

        domain = origin_of(start_urls[0])
        hostname = urlsplit(start_urls[0]).hostname or ""

        sitemap: Optional[SitemapSummary] = None
        if self.config.include_sitemap:
            logger.info(f"Analyzing domain sitemaps for: {domain}")
            sitemap = self.sitemap_analyzer.analyze_domain_sitemaps(domain, self.config.sitemap_timeout)

        pages = self.crawl(start_urls)

        certificate: Optional[CertificateInfo] = None
        if self.config.include_certificate and hostname:
            certificate = self.certificate_probe.describe(hostname)
            logger.info(f"Certificate status for {hostname}: {certificate.status}")

        summary = self.aggregator.aggregate(pages, sitemap=sitemap, certificate=certificate, domain_name=hostname)
        logger.info(
            f"Audit of {hostname} complete: {summary.total_pages_analyzed} pages, "
            f"average score {summary.average_seo_score} ({summary.overall_grade})"
        )
        return AuditReport(domain=summary, pages=pages)

    def crawl(self, start_urls: List[str]) -> List[PageResult]:
        """Process the queue breadth-first and return every page result."""
        queue: Deque[str] = deque(self.normalizer.normalize(url) for url in start_urls)
        queued: Set[str] = set(queue)
        visited: Set[str] = set()
        results: List[PageResult] = []
        analyzed = 0

        while queue and analyzed < self.config.max_pages:
            url = queue.popleft()
            queued.discard(url)
            if url in visited:
                continue
            visited.add(url)

            logger.info(f"Processing: {url} ({analyzed + 1}/{self.config.max_pages})")
            result = self.process_page(url)
            results.append(result)

            if result.is_error:
                continue
            analyzed += 1

            if self.config.crawl_urls:
                for link in self._next_links(result, visited, queued):
                    queue.append(link)
                    queued.add(link)
                    logger.debug(f"Added to crawl queue: {link}")

        return results

    def process_page(self, url: str) -> PageResult:
        """Fetch, analyze and score one page; failures become error results."""
        try:
            response = self.fetcher.fetch(url, timeout=self.config.page_timeout)
        except FetchError as e:
            logger.error(f"Error analyzing {url}: {e}")
            return PageResult(url=url, status_code=e.status_code, error=str(e))

        features = self.analyzer.analyze(url, response.body, response.status_code, response.headers)
        score = self.scorer.score(features)
        logger.info(f"SEO Score for {url}: {score.score}/100 ({score.grade}, status {response.status_code})")
        return PageResult(url=url, status_code=response.status_code, features=features, score=score)

    def _next_links(self, result: PageResult, visited: Set[str], queued: Set[str]) -> List[str]:
        origin = origin_of(result.url)
        links = []
        for record in result.features.links.internal_links:
            link = self.normalizer.normalize(record.url)
            try:
                same_origin = origin_of(link) == origin
            except ValueError:
                continue
            if not same_origin or link in visited or link in queued or link in links:
                continue
            links.append(link)
        return links
