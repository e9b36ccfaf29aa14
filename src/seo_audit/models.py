"""Data models for the SEO audit."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from seo_audit.constants import DATA_SOURCE, DATA_FORMAT_VERSION, SEO_ENGINE_VERSION


@dataclass
class FetchResponse:
    """Result of a single HTTP request."""

    url: str
    status_code: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default


@dataclass
class LinkRecord:
    """An outbound anchor after classification."""

    url: str
    anchor_text: str = ""
    target: Optional[str] = None
    status_code: Optional[int] = None  # None until the liveness check runs
    is_broken: bool = False

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "anchorText": self.anchor_text,
            "target": self.target,
            "statusCode": self.status_code,
            "isBroken": self.is_broken,
        }


@dataclass
class ImageRecord:
    """An image found on a page."""

    image_url: str
    image_index: int  # 1-based, document order
    content_type: str = "unknown"
    size_in_bytes: int = 0
    alt: str = ""
    status_code: Optional[int] = None

    @property
    def size_in_kb(self) -> float:
        return round(self.size_in_bytes / 1000, 2)

    def to_dict(self) -> dict:
        return {
            "imageUrl": self.image_url,
            "imageIndex": self.image_index,
            "contentLength": self.size_in_bytes,
            "contentType": self.content_type,
            "statusCode": self.status_code,
            "alt": self.alt,
            "sizeInByte": self.size_in_bytes,
            "sizeInKb": self.size_in_kb,
        }


@dataclass(frozen=True)
class HeadingEntry:
    """A heading in document order."""

    tag: str
    level: int
    text: str
    position: int  # 1-based

    def to_dict(self) -> dict:
        return {
            "tag": self.tag,
            "level": self.level,
            "text": self.text,
            "position": self.position,
        }


@dataclass
class OpenGraphData:
    """Common OpenGraph properties of a page."""

    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    url: Optional[str] = None
    site_name: Optional[str] = None
    type: Optional[str] = None
    locale: Optional[str] = None
    images: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "url": self.url,
            "site_name": self.site_name,
            "type": self.type,
            "locale": self.locale,
            "images": [dict(image) for image in self.images],
        }


@dataclass
class LinkSummary:
    """Classified links of a page."""

    internal_links: list[LinkRecord] = field(default_factory=list)
    external_links: list[LinkRecord] = field(default_factory=list)
    average_anchor_length: int = 0

    @property
    def internal_count(self) -> int:
        return len(self.internal_links)

    @property
    def external_count(self) -> int:
        return len(self.external_links)

    @property
    def broken_internal(self) -> int:
        return sum(1 for link in self.internal_links if link.is_broken)

    @property
    def broken_external(self) -> int:
        return sum(1 for link in self.external_links if link.is_broken)

    @property
    def total_broken(self) -> int:
        return self.broken_internal + self.broken_external

    @property
    def broken_percentage(self) -> int:
        total = self.internal_count + self.external_count
        if total == 0:
            return 0
        return round(self.total_broken / total * 100)


@dataclass
class SitemapSummary:
    """Outcome of walking a domain's sitemap tree."""

    domain: str
    sitemap_url: Optional[str] = None
    has_sitemap: bool = False
    sitemap_type: Optional[str] = None  # urlset | sitemap_index | robots_txt_reference
    sitemap_size: int = 0
    sitemap_last_modified: Optional[str] = None
    sitemap_urls: list[str] = field(default_factory=list)
    total_urls: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "sitemapUrl": self.sitemap_url,
            "hasSitemap": self.has_sitemap,
            "sitemapType": self.sitemap_type,
            "sitemapSize": self.sitemap_size,
            "sitemapLastModified": self.sitemap_last_modified,
            "sitemapUrls": list(self.sitemap_urls),
            "totalUrls": self.total_urls,
            "error": self.error,
        }

    def to_info_dict(self) -> dict:
        """Domain-summary view of the sitemap."""
        return {
            "has_sitemap": self.has_sitemap,
            "sitemap_url": self.sitemap_url,
            "sitemap_type": self.sitemap_type,
            "sitemap_size": self.sitemap_size,
            "total_urls": self.total_urls,
            "sitemap_urls": list(self.sitemap_urls),
            "sitemap_lastmod": self.sitemap_last_modified,
        }


@dataclass(frozen=True)
class PageFeatures:
    """Everything extracted from one fetched page.

    Built once by the page analyzer and consumed by the scorer. Lengths and
    per-level heading counts are derived from the stored text so they can
    never disagree with it.
    """

    url: str
    status_code: int = 200
    language: str = ""

    # Title / description
    title: str = ""
    all_titles: list[str] = field(default_factory=list)
    title_duplicate_words: int = 0
    description: str = ""

    # Headings
    h1: list[str] = field(default_factory=list)
    h2: list[str] = field(default_factory=list)
    h3: list[str] = field(default_factory=list)
    h4: list[str] = field(default_factory=list)
    h5: list[str] = field(default_factory=list)
    h6: list[str] = field(default_factory=list)
    heading_structure: list[HeadingEntry] = field(default_factory=list)
    heading_score: Optional[int] = None

    # Content
    word_count: int = 0  # visible text, chrome included
    word_count_content_only: int = 0
    total_word_count: int = 0  # whole serialized markup
    paragraphs: int = 0
    strong_tags: int = 0
    lorem_ipsum: bool = False

    # Technical flags
    has_https: bool = False
    favicon: bool = False
    apple_touch_icon: bool = False
    viewport: bool = False
    charset: bool = False
    canonical_url: str = ""
    hreflang: list[str] = field(default_factory=list)
    meta_robots: str = ""
    x_robots: str = ""
    has_amp: bool = False
    has_google_analytics: bool = False
    iframes: int = 0
    javascript_files: int = 0
    css_files: int = 0

    # Social / structured data
    has_open_graph: bool = False
    open_graph_tags: dict[str, str] = field(default_factory=dict)
    open_graph: OpenGraphData = field(default_factory=OpenGraphData)
    has_twitter_cards: bool = False
    has_schema: bool = False
    has_json_ld: bool = False
    has_microdata: bool = False

    # Links and images
    links: LinkSummary = field(default_factory=LinkSummary)
    images: list[ImageRecord] = field(default_factory=list)
    image_count: int = 0  # every <img src>, independent of the inventory cap
    images_without_alt: int = 0

    sitemap: Optional[SitemapSummary] = None

    @property
    def title_length(self) -> int:
        return len(self.title)

    @property
    def description_length(self) -> int:
        return len(self.description)

    @property
    def h1_count(self) -> int:
        return len(self.h1)

    @property
    def h2_count(self) -> int:
        return len(self.h2)

    @property
    def h3_count(self) -> int:
        return len(self.h3)

    @property
    def has_canonical(self) -> bool:
        return bool(self.canonical_url)

    @property
    def has_hreflang(self) -> bool:
        return bool(self.hreflang)

    def to_dict(self) -> dict:
        """Flat record using the stable downstream field names."""
        record = {
            "url": self.url,
            "pageStatusCode": self.status_code,
            "language": self.language,

            "hasHttps": self.has_https,
            "pageHttpsStatus": self.url.startswith("https://"),
            "hasHreflang": self.has_hreflang,
            "hasOpenGraph": self.has_open_graph,
            "hasTwitterCards": self.has_twitter_cards,
            "hasSchema": self.has_schema,
            "hasJsonLd": self.has_json_ld,
            "hasMicrodata": self.has_microdata,
            "hasAmp": self.has_amp,
            "hasGoogleAnalytics": self.has_google_analytics,
            "viewport": self.viewport,
            "mobileResponsive": self.viewport,
            "charset": self.charset,
            "favicon": self.favicon,
            "appleTouchIcon": self.apple_touch_icon,

            "title": self.title,
            "titleLength": self.title_length,
            "titleDuplicateWords": self.title_duplicate_words,
            "allTitles": list(self.all_titles),
            "titleCount": len(self.all_titles),
            "headTitleCount": len(self.all_titles),

            "description": self.description,
            "descriptionLength": self.description_length,
        }

        for level in range(1, 7):
            texts = getattr(self, f"h{level}")
            record[f"h{level}"] = list(texts)
        for level in range(1, 7):
            record[f"h{level}Count"] = len(getattr(self, f"h{level}"))

        record.update({
            "headingStructure": [h.to_dict() for h in self.heading_structure],
            "headingScore": self.heading_score,

            "words": self.word_count,
            "wordcount": self.word_count,
            "wordcountcontentonly": self.word_count_content_only,
            "totalwordcount": self.total_word_count,
            "paragraphs": self.paragraphs,
            "strongTags": self.strong_tags,
            "loremIpsum": self.lorem_ipsum,

            "canonicalUrl": self.canonical_url,
            "metaRobots": self.meta_robots,
            "xRobots": self.x_robots,
            "hreflang": self.has_hreflang,
            "javascriptFiles": self.javascript_files,
            "cssFiles": self.css_files,

            "openGraphData": self.open_graph.to_dict(),
            "openGraphTags": dict(self.open_graph_tags),

            "internalLinks": [link.to_dict() for link in self.links.internal_links],
            "internalLinksCount": self.links.internal_count,
            "externalLinks": [link.to_dict() for link in self.links.external_links],
            "externalLinksCount": self.links.external_count,
            "averageAnchorTextLength": self.links.average_anchor_length,
            "brokenInternalLinks": self.links.broken_internal,
            "brokenExternalLinks": self.links.broken_external,
            "totalBrokenLinks": self.links.total_broken,
            "brokenLinksPercentage": self.links.broken_percentage,

            "images": [image.to_dict() for image in self.images],
            "imagesCount": self.image_count,
            "imagesWithoutAlt": self.images_without_alt,

            "iframes": self.iframes,
        })

        if self.sitemap is not None:
            record["sitemap"] = self.sitemap.to_dict()

        return record


@dataclass(frozen=True)
class ScoreResult:
    """Score, grade and issues for one page."""

    score: int
    grade: str
    category: str
    issues: tuple[str, ...] = ()
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "seo_page_score": self.score,
            "seo_grade": self.grade,
            "seo_category": self.category,
            "seo_issues_count": len(self.issues),
            "notes": self.notes,
            "issues": list(self.issues),
        }


@dataclass
class CertificateInfo:
    """TLS certificate descriptor for a domain."""

    is_valid: bool = False
    valid_until: Optional[str] = None
    days_until_expiry: int = 0
    issuer: str = "Unknown"
    subject: str = "Unknown"
    serial_number: str = "Unknown"
    fingerprint: str = "Unknown"
    status: str = "error"
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "is_valid": self.is_valid,
            "valid_until": self.valid_until,
            "days_until_expiry": self.days_until_expiry,
            "issuer": self.issuer,
            "subject": self.subject,
            "serial_number": self.serial_number,
            "fingerprint": self.fingerprint,
            "status": self.status,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class PageResult:
    """Analysed page, or a page that could not be fetched."""

    url: str
    status_code: int
    features: Optional[PageFeatures] = None
    score: Optional[ScoreResult] = None
    error: Optional[str] = None
    analysis_date: datetime = field(default_factory=datetime.now)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        record: dict = {}
        if self.features is not None:
            record.update(self.features.to_dict())
        else:
            record["url"] = self.url
        if self.score is not None:
            record.update(self.score.to_dict())
        if self.error is not None:
            record["error"] = self.error
        record["statusCode"] = self.status_code
        record["analysis_date"] = self.analysis_date.isoformat()
        record["data_source"] = DATA_SOURCE
        return record


@dataclass
class DomainSummary:
    """Site-wide aggregates over all page results of one audit run."""

    domain_name: str = ""
    total_pages_analyzed: int = 0
    average_seo_score: float = 0.0
    overall_grade: str = "F"

    pages_with_h1: int = 0
    pages_with_h1_percentage: int = 0
    pages_with_meta_description: int = 0
    pages_with_meta_description_percentage: int = 0
    pages_with_images: int = 0
    pages_with_images_percentage: int = 0
    pages_with_errors: int = 0
    pages_with_errors_percentage: int = 0

    average_title_length: int = 0
    average_description_length: int = 0
    average_words_per_page: int = 0
    average_internal_links: int = 0

    pages_with_successful_status: int = 0
    pages_with_successful_status_percentage: int = 0
    pages_with_redirect_status: int = 0
    pages_with_redirect_status_percentage: int = 0
    pages_with_error_status: int = 0
    pages_with_error_status_percentage: int = 0

    pages_with_opengraph: int = 0
    pages_with_opengraph_percentage: int = 0
    pages_with_opengraph_title: int = 0
    pages_with_opengraph_title_percentage: int = 0
    pages_with_opengraph_description: int = 0
    pages_with_opengraph_description_percentage: int = 0
    pages_with_opengraph_image: int = 0
    pages_with_opengraph_image_percentage: int = 0

    certificate: Optional[CertificateInfo] = None
    sitemap: Optional[SitemapSummary] = None

    def to_dict(self) -> dict:
        sitemap = self.sitemap or SitemapSummary(domain=self.domain_name)
        certificate = self.certificate.to_dict() if self.certificate else None
        return {
            "domain_name": self.domain_name,
            "domainLength": len(self.domain_name),
            "total_pages_analyzed": self.total_pages_analyzed,
            "average_seo_score": self.average_seo_score,
            "overall_grade": self.overall_grade,
            "seo_score": self.average_seo_score,
            "seo_grade": self.overall_grade,

            "pages_with_h1": self.pages_with_h1,
            "pages_with_h1_percentage": self.pages_with_h1_percentage,
            "pages_with_meta_description": self.pages_with_meta_description,
            "pages_with_meta_description_percentage": self.pages_with_meta_description_percentage,
            "pages_with_images": self.pages_with_images,
            "pages_with_images_percentage": self.pages_with_images_percentage,
            "pages_with_errors": self.pages_with_errors,
            "pages_with_errors_percentage": self.pages_with_errors_percentage,

            "average_title_length": self.average_title_length,
            "average_description_length": self.average_description_length,
            "average_words_per_page": self.average_words_per_page,
            "average_internal_links": self.average_internal_links,

            "pages_with_successful_status": self.pages_with_successful_status,
            "pages_with_successful_status_percentage": self.pages_with_successful_status_percentage,
            "pages_with_redirect_status": self.pages_with_redirect_status,
            "pages_with_redirect_status_percentage": self.pages_with_redirect_status_percentage,
            "pages_with_error_status": self.pages_with_error_status,
            "pages_with_error_status_percentage": self.pages_with_error_status_percentage,

            "pages_with_opengraph": self.pages_with_opengraph,
            "pages_with_opengraph_percentage": self.pages_with_opengraph_percentage,
            "pages_with_opengraph_title": self.pages_with_opengraph_title,
            "pages_with_opengraph_title_percentage": self.pages_with_opengraph_title_percentage,
            "pages_with_opengraph_description": self.pages_with_opengraph_description,
            "pages_with_opengraph_description_percentage": (
                self.pages_with_opengraph_description_percentage
            ),
            "pages_with_opengraph_image": self.pages_with_opengraph_image,
            "pages_with_opengraph_image_percentage": self.pages_with_opengraph_image_percentage,

            "ssl_certificate_info": certificate,
            "sitemap_info": sitemap.to_info_dict(),
        }


@dataclass
class AuditReport:
    """Full output of one audit run."""

    domain: DomainSummary
    pages: list[PageResult] = field(default_factory=list)
    completed_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "domain": self.domain.to_dict(),
            "pages": [page.to_dict() for page in self.pages],
            "analysis": {
                "total_pages_processed": len(self.pages),
                "analysis_completed_at": self.completed_at.isoformat(),
                "seo_engine_version": SEO_ENGINE_VERSION,
                "data_format_version": DATA_FORMAT_VERSION,
            },
        }
