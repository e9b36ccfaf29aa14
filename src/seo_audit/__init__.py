"""On-page SEO audit: crawl, extract, score and aggregate."""

__version__ = "1.0.0"

from seo_audit.url_normalizer import URLNormalizer, normalize_url, normalize_for_comparison
from seo_audit.link_classifier import Anchor, LinkClassifier, LinkChecker
from seo_audit.content_extractor import ContentExtractor
from seo_audit.image_inventory import ImageInventory, ImageProbe
from seo_audit.sitemap_analyzer import SitemapAnalyzer, SitemapFetchError
from seo_audit.scorer import SEOScorer, grade_for, category_for
from seo_audit.aggregator import DomainAggregator
from seo_audit.page_analyzer import PageAnalyzer
from seo_audit.site_auditor import SiteAuditor
from seo_audit.certificate import CertificateProbe
from seo_audit.fetcher import HttpFetcher, FetchError
from seo_audit.models import (
    FetchResponse,
    LinkRecord,
    ImageRecord,
    HeadingEntry,
    OpenGraphData,
    LinkSummary,
    SitemapSummary,
    PageFeatures,
    ScoreResult,
    CertificateInfo,
    PageResult,
    DomainSummary,
    AuditReport,
)
from seo_audit.config import settings, AuditConfig, ScoringThresholds

__all__ = [
    # Core
    "URLNormalizer",
    "normalize_url",
    "normalize_for_comparison",
    "Anchor",
    "LinkClassifier",
    "LinkChecker",
    "ContentExtractor",
    "ImageInventory",
    "ImageProbe",
    "SitemapAnalyzer",
    "SitemapFetchError",
    "SEOScorer",
    "grade_for",
    "category_for",
    "DomainAggregator",
    "PageAnalyzer",
    "SiteAuditor",
    # Collaborators
    "CertificateProbe",
    "HttpFetcher",
    "FetchError",
    # Models
    "FetchResponse",
    "LinkRecord",
    "ImageRecord",
    "HeadingEntry",
    "OpenGraphData",
    "LinkSummary",
    "SitemapSummary",
    "PageFeatures",
    "ScoreResult",
    "CertificateInfo",
    "PageResult",
    "DomainSummary",
    "AuditReport",
    # Config
    "settings",
    "AuditConfig",
    "ScoringThresholds",
]
