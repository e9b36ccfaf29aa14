"""Domain-level reduction over page results."""

from typing import Callable, List, Optional
from urllib.parse import urlsplit

from seo_audit.models import (
    CertificateInfo,
    DomainSummary,
    PageFeatures,
    PageResult,
    SitemapSummary,
)
from seo_audit.scorer import grade_for


def _percentage(count: int, total: int) -> int:
    if total == 0:
        return 0
    return round(count / total * 100)


def _average(values: List[float], total: int) -> int:
    if total == 0:
        return 0
    return round(sum(values) / total)


class DomainAggregator:
    """Builds the DomainSummary for one audit run.

    Every percentage and average divides by the number of page results,
    error pages included; the average score only covers scored pages.
    """

    def aggregate(
        self,
        pages: List[PageResult],
        sitemap: Optional[SitemapSummary] = None,
        certificate: Optional[CertificateInfo] = None,
        domain_name: Optional[str] = None,
    ) -> DomainSummary:
        total = len(pages)
        if domain_name is None:
            domain_name = (urlsplit(pages[0].url).hostname or "") if pages else ""

        scores = [page.score.score for page in pages if page.score is not None]
        average_score = round(sum(scores) / len(scores), 2) if scores else 0.0

        features = [page.features for page in pages if page.features is not None]

        def count(predicate: Callable[[PageFeatures], bool]) -> int:
            return sum(1 for f in features if predicate(f))

        statuses = [page.status_code for page in pages if page.status_code]
        successful = sum(1 for code in statuses if 200 <= code < 300)
        redirects = sum(1 for code in statuses if 300 <= code < 400)
        errors = sum(1 for code in statuses if code >= 400)

        with_h1 = count(lambda f: f.h1_count > 0)
        with_description = count(lambda f: f.description_length > 0)
        with_images = count(lambda f: f.image_count > 0)
        with_error = sum(1 for page in pages if page.is_error)
        with_og = count(lambda f: f.has_open_graph)
        with_og_title = count(lambda f: bool(f.open_graph.title))
        with_og_description = count(lambda f: bool(f.open_graph.description))
        with_og_image = count(lambda f: bool(f.open_graph.image or f.open_graph.images))

        return DomainSummary(
            domain_name=domain_name,
            total_pages_analyzed=total,
            average_seo_score=average_score,
            overall_grade=grade_for(average_score),

            pages_with_h1=with_h1,
            pages_with_h1_percentage=_percentage(with_h1, total),
            pages_with_meta_description=with_description,
            pages_with_meta_description_percentage=_percentage(with_description, total),
            pages_with_images=with_images,
            pages_with_images_percentage=_percentage(with_images, total),
            pages_with_errors=with_error,
            pages_with_errors_percentage=_percentage(with_error, total),

            average_title_length=_average([f.title_length for f in features], total),
            average_description_length=_average([f.description_length for f in features], total),
            average_words_per_page=_average([f.word_count for f in features], total),
            average_internal_links=_average([f.links.internal_count for f in features], total),

            pages_with_successful_status=successful,
            pages_with_successful_status_percentage=_percentage(successful, total),
            pages_with_redirect_status=redirects,
            pages_with_redirect_status_percentage=_percentage(redirects, total),
            pages_with_error_status=errors,
            pages_with_error_status_percentage=_percentage(errors, total),

            pages_with_opengraph=with_og,
            pages_with_opengraph_percentage=_percentage(with_og, total),
            pages_with_opengraph_title=with_og_title,
            pages_with_opengraph_title_percentage=_percentage(with_og_title, total),
            pages_with_opengraph_description=with_og_description,
            pages_with_opengraph_description_percentage=_percentage(with_og_description, total),
            pages_with_opengraph_image=with_og_image,
            pages_with_opengraph_image_percentage=_percentage(with_og_image, total),

            certificate=certificate,
            sitemap=sitemap,
        )
