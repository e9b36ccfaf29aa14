"""Per-page feature extraction."""

import logging
from typing import Mapping, Optional

from bs4 import BeautifulSoup

from seo_audit.config import AuditConfig
from seo_audit.content_extractor import ContentExtractor
from seo_audit.image_inventory import ImageInventory, ImageProbe
from seo_audit.link_classifier import LinkChecker, LinkClassifier, anchors_from_soup
from seo_audit.models import PageFeatures, SitemapSummary

logger = logging.getLogger(__name__)


class PageAnalyzer:
    """Turns one fetched HTML document into PageFeatures.

    The document is parsed once; every extractor reads the same tree.
    """

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        link_checker: Optional[LinkChecker] = None,
        image_probe: Optional[ImageProbe] = None,
        classifier: Optional[LinkClassifier] = None,
    ):
        """Initialize the analyzer.

        Args:
            config: Audit configuration (defaults apply if omitted)
            link_checker: Liveness checker, used when config.check_links is set
            image_probe: Image metadata probe, used when config.include_images is set
            classifier: Link classifier (default social/shortener exclusions)
        """
        self.config = config or AuditConfig()
        self.link_checker = link_checker
        self.image_probe = image_probe
        self.classifier = classifier or LinkClassifier()
        self.extractor = ContentExtractor()
        self.inventory = ImageInventory()

    def analyze(
        self,
        url: str,
        html: str,
        status_code: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        sitemap: Optional[SitemapSummary] = None,
    ) -> PageFeatures:
        """Extract every feature of a page.

        Args:
            url: Final URL of the page
            html: Response body
            status_code: HTTP status of the page response
            headers: Response headers (X-Robots-Tag is read from here first)
            sitemap: Domain sitemap summary to attach to the record

        Returns:
            PageFeatures
        """
        soup = BeautifulSoup(html or "", "html.parser")
        extractor = self.extractor

        meta = extractor.meta_tags(soup)
        header_robots = self._header(headers, "x-robots-tag")
        technical = extractor.technical_flags(soup, url)
        open_graph = extractor.open_graph(soup)
        structured = extractor.structured_data(soup)
        words = extractor.word_counts(soup)
        headings = extractor.headings(soup, meta.title)

        links = self.classifier.classify(anchors_from_soup(soup), url)
        if self.config.check_links and self.link_checker is not None:
            self.link_checker.check(links.internal_links + links.external_links)

        images = []
        if self.config.include_images:
            images = self.inventory.inventory(soup, url, self.config.max_images_per_page)
            if self.image_probe is not None:
                self.image_probe.probe(images)

        logger.debug(
            f"Analyzed {url}: {words.visible} words, {links.internal_count} internal / "
            f"{links.external_count} external links, {len(images)} images"
        )

        return PageFeatures(
            url=url,
            status_code=status_code,
            language=meta.language,

            title=meta.title,
            all_titles=meta.all_titles,
            title_duplicate_words=extractor.title_duplicate_words(meta.title),
            description=meta.description,

            h1=headings.texts(1),
            h2=headings.texts(2),
            h3=headings.texts(3),
            h4=headings.texts(4),
            h5=headings.texts(5),
            h6=headings.texts(6),
            heading_structure=headings.structure,
            heading_score=headings.score,

            word_count=words.visible,
            word_count_content_only=words.content_only,
            total_word_count=words.total,
            paragraphs=extractor.paragraph_count(soup),
            strong_tags=extractor.emphasis_count(soup),
            lorem_ipsum=extractor.detect_lorem_ipsum(extractor.visible_text(soup)),

            has_https=technical.has_https,
            favicon=technical.favicon,
            apple_touch_icon=technical.apple_touch_icon,
            viewport=technical.viewport,
            charset=technical.charset,
            canonical_url=technical.canonical_url,
            hreflang=technical.hreflang,
            meta_robots=meta.meta_robots,
            x_robots=header_robots or meta.x_robots,
            has_amp=technical.has_amp,
            has_google_analytics=technical.has_google_analytics,
            iframes=technical.iframes,
            javascript_files=technical.javascript_files,
            css_files=technical.css_files,

            has_open_graph=open_graph.has_open_graph,
            open_graph_tags=open_graph.tags,
            open_graph=open_graph.data,
            has_twitter_cards=meta.has_twitter_cards,
            has_schema=structured.has_schema,
            has_json_ld=structured.has_json_ld,
            has_microdata=structured.has_microdata,

            links=links,
            images=images,
            image_count=self.inventory.count_images(soup),
            images_without_alt=self.inventory.count_missing_alt(soup),

            sitemap=sitemap,
        )

    @staticmethod
    def _header(headers: Optional[Mapping[str, str]], name: str) -> str:
        for key, value in (headers or {}).items():
            if key.lower() == name:
                return (value or "").strip()
        return ""
