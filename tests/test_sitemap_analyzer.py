"""Tests for the sitemap tree walker."""

import pytest

from seo_audit.fetcher import FetchError
from seo_audit.models import FetchResponse
from seo_audit.sitemap_analyzer import (
    SitemapAnalyzer,
    classify_sitemap,
    count_sitemaps_in_index,
    count_urls_in_sitemap,
    extract_last_modified,
    extract_locations,
    extract_sitemaps_from_robots,
)

XML = {"content-type": "application/xml; charset=utf-8"}


def urlset(*urls, lastmod=None):
    entries = "".join(
        f"<url><loc>{url}</loc>{f'<lastmod>{lastmod}</lastmod>' if lastmod else ''}</url>"
        for url in urls
    )
    return f'<?xml version="1.0"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def sitemap_index(*children):
    entries = "".join(f"<sitemap><loc>{child}</loc></sitemap>" for child in children)
    return f'<?xml version="1.0"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


class FakeFetcher:
    """Serves canned responses keyed by (method, url)."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def fetch(self, url, timeout=30, allow_redirects=True, method="GET", headers=None):
        self.calls.append((method, url, timeout))
        route = self.routes.get((method, url))
        if route is None and method == "HEAD":
            return FetchResponse(url=url, status_code=200)
        if route is None:
            return FetchResponse(url=url, status_code=404, body="not found", headers={"content-type": "text/html"})
        if isinstance(route, Exception):
            raise route
        status, body, headers = route
        return FetchResponse(url=url, status_code=status, body=body, headers=headers)


def get(url, body, headers=XML, status=200):
    return ("GET", url), (status, body, headers)


class TestSitemapHelpers:
    """Test suite for the document helpers."""

    def test_classify(self):
        assert classify_sitemap(sitemap_index("https://a.com/s1.xml")) == "sitemap_index"
        assert classify_sitemap(urlset("https://a.com/")) == "urlset"
        assert classify_sitemap("<html>nope</html>") is None

    def test_counts_exclude_root_elements(self):
        assert count_urls_in_sitemap(urlset("https://a.com/1", "https://a.com/2")) == 2
        assert count_sitemaps_in_index(sitemap_index("https://a.com/s1.xml")) == 1

    def test_extract_locations_and_lastmod(self):
        content = urlset("https://a.com/1", " https://a.com/2 ", lastmod="2024-05-01")
        assert extract_locations(content) == ["https://a.com/1", "https://a.com/2"]
        assert extract_last_modified(content) == "2024-05-01"
        assert extract_last_modified(urlset("https://a.com/")) is None

    def test_robots_directives(self):
        robots = "User-agent: *\nDisallow: /admin\nSitemap: https://a.com/s1.xml\nsitemap:/s2.xml\n"
        assert extract_sitemaps_from_robots(robots, "https://a.com") == [
            "https://a.com/s1.xml",
            "https://a.com/s2.xml",
        ]


class TestSitemapAnalyzer:
    """Test suite for SitemapAnalyzer."""

    def test_urlset(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/sitemap.xml", urlset("https://a.com/", "https://a.com/about", lastmod="2024-01-02")),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com")

        assert summary.has_sitemap is True
        assert summary.sitemap_type == "urlset"
        assert summary.sitemap_url == "https://a.com/sitemap.xml"
        assert summary.sitemap_size == 2
        assert summary.total_urls == 2
        assert summary.sitemap_urls == ["https://a.com/", "https://a.com/about"]
        assert summary.sitemap_last_modified == "2024-01-02"
        assert summary.error is None

    def test_index_sums_children(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/sitemap.xml", sitemap_index("https://a.com/posts.xml", "https://a.com/pages.xml")),
            get("https://a.com/posts.xml", urlset("https://a.com/p1", "https://a.com/p2", "https://a.com/p3")),
            get("https://a.com/pages.xml", urlset("https://a.com/about")),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com/")

        assert summary.sitemap_type == "sitemap_index"
        assert summary.sitemap_size == 2
        assert summary.sitemap_urls == ["https://a.com/posts.xml", "https://a.com/pages.xml"]
        assert summary.total_urls == 4

    def test_failed_child_contributes_zero(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/sitemap.xml", sitemap_index("https://a.com/ok.xml", "https://a.com/down.xml")),
            get("https://a.com/ok.xml", urlset("https://a.com/1")),
            (("GET", "https://a.com/down.xml"), FetchError("timed out", url="https://a.com/down.xml", status_code=408)),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com")

        assert summary.total_urls == 1
        assert summary.error is None

    def test_self_referencing_index_terminates(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/sitemap.xml", sitemap_index("https://a.com/sitemap.xml", "https://a.com/leaf.xml")),
            get("https://a.com/leaf.xml", urlset("https://a.com/1", "https://a.com/2")),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com")

        assert summary.total_urls == 2
        root_fetches = [c for c in fetcher.calls if c[:2] == ("GET", "https://a.com/sitemap.xml")]
        assert len(root_fetches) == 1

    def test_circular_indexes_terminate(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/a.xml", sitemap_index("https://a.com/b.xml")),
            get("https://a.com/b.xml", sitemap_index("https://a.com/a.xml", "https://a.com/leaf.xml")),
            get("https://a.com/leaf.xml", urlset("https://a.com/1")),
        ]))
        assert SitemapAnalyzer(fetcher).count_total_urls("https://a.com/a.xml") == 1

    def test_depth_bound(self):
        """An index chain 15 deep stops at the depth bound without error."""
        routes = {}
        for level in range(1, 16):
            children = [f"https://a.com/leaf{level}.xml"]
            if level < 15:
                children.append(f"https://a.com/index{level + 1}.xml")
            routes.update(dict([
                get(f"https://a.com/index{level}.xml", sitemap_index(*children)),
                get(f"https://a.com/leaf{level}.xml", urlset(f"https://a.com/page{level}")),
            ]))
        fetcher = FakeFetcher(routes)

        total = SitemapAnalyzer(fetcher, max_depth=10).count_total_urls("https://a.com/index1.xml")

        # index N is read with depth budget 11 - N, its leaf with 10 - N,
        # so leaves of index 1..9 are counted
        assert total == 9
        fetched = {url for method, url, _ in fetcher.calls}
        assert "https://a.com/index10.xml" in fetched
        assert "https://a.com/index11.xml" not in fetched

    def test_follows_redirects_before_fetching(self):
        fetcher = FakeFetcher(dict([
            (("HEAD", "https://a.com/sitemap.xml"), (301, "", {"Location": "https://www.a.com/sitemap.xml"})),
            (("HEAD", "https://www.a.com/sitemap.xml"), (302, "", {"location": "/sitemaps/main.xml"})),
            get("https://www.a.com/sitemaps/main.xml", urlset("https://www.a.com/")),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com")

        assert summary.sitemap_url == "https://www.a.com/sitemaps/main.xml"
        assert summary.total_urls == 1

    def test_redirect_limit(self):
        routes = {
            ("HEAD", f"https://a.com/hop{i}"): (302, "", {"location": f"https://a.com/hop{i + 1}"})
            for i in range(10)
        }
        analyzer = SitemapAnalyzer(FakeFetcher(routes), max_redirects=5)
        assert analyzer.follow_redirects("https://a.com/hop0") == "https://a.com/hop5"

    def test_robots_fallback(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/robots.txt", "Sitemap: https://a.com/s1.xml\nSitemap: https://a.com/s2.xml\n",
                headers={"content-type": "text/plain"}),
            get("https://a.com/s1.xml", urlset("https://a.com/1", "https://a.com/2")),
            get("https://a.com/s2.xml", sitemap_index("https://a.com/s3.xml")),
            get("https://a.com/s3.xml", urlset("https://a.com/3")),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com", timeout=10)

        assert summary.has_sitemap is True
        assert summary.sitemap_type == "robots_txt_reference"
        assert summary.sitemap_url == "https://a.com/s1.xml"
        assert summary.sitemap_urls == ["https://a.com/s1.xml", "https://a.com/s2.xml"]
        assert summary.total_urls == 3
        assert summary.error is None
        robots_call = next(c for c in fetcher.calls if c[1] == "https://a.com/robots.txt")
        assert robots_call[2] == 5

    def test_non_xml_root_triggers_fallback(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/sitemap.xml", urlset("https://a.com/1"), headers={"content-type": "image/png"}),
            get("https://a.com/robots.txt", "Sitemap: https://a.com/real.xml", headers={"content-type": "text/plain"}),
            get("https://a.com/real.xml", urlset("https://a.com/1", "https://a.com/2")),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com")

        assert summary.sitemap_type == "robots_txt_reference"
        assert summary.total_urls == 2

    def test_html_soft_404_triggers_fallback(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/sitemap.xml", "<html>Page not found</html>", headers={"content-type": "text/html"}),
            get("https://a.com/robots.txt", "Sitemap: https://a.com/real.xml", headers={"content-type": "text/plain"}),
            get("https://a.com/real.xml", urlset("https://a.com/1", "https://a.com/2", "https://a.com/3")),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com")

        assert summary.has_sitemap is True
        assert summary.sitemap_type == "robots_txt_reference"
        assert summary.sitemap_url == "https://a.com/real.xml"
        assert summary.total_urls == 3
        assert summary.error is None

    def test_html_soft_404_without_robots_sitemaps(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/sitemap.xml", "<html>Page not found</html>", headers={"content-type": "text/html"}),
            get("https://a.com/robots.txt", "User-agent: *\nDisallow:", headers={"content-type": "text/plain"}),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com")

        assert summary.has_sitemap is False
        assert summary.sitemap_type is None
        assert summary.total_urls == 0
        assert "neither a sitemap index nor a urlset" in summary.error

    def test_every_path_fails(self):
        summary = SitemapAnalyzer(FakeFetcher()).analyze_domain_sitemaps("https://a.com")

        assert summary.has_sitemap is False
        assert summary.sitemap_type is None
        assert summary.total_urls == 0
        assert "404" in summary.error
        assert "robots.txt" in summary.error

    def test_robots_without_sitemaps_keeps_error(self):
        fetcher = FakeFetcher(dict([
            get("https://a.com/robots.txt", "User-agent: *\nDisallow:", headers={"content-type": "text/plain"}),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com")

        assert summary.has_sitemap is False
        assert summary.error is not None

    def test_transport_error_on_root(self):
        fetcher = FakeFetcher(dict([
            (("GET", "https://a.com/sitemap.xml"), FetchError("connection refused", url="https://a.com/sitemap.xml", status_code=404)),
            get("https://a.com/robots.txt", "Sitemap: https://a.com/s.xml", headers={"content-type": "text/plain"}),
            get("https://a.com/s.xml", urlset("https://a.com/1")),
        ]))
        summary = SitemapAnalyzer(fetcher).analyze_domain_sitemaps("https://a.com")

        assert summary.has_sitemap is True
        assert summary.total_urls == 1
