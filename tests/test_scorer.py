"""Tests for the SEO scorer."""

from dataclasses import replace

import pytest

from seo_audit.config import ScoringThresholds
from seo_audit.models import PageFeatures
from seo_audit.scorer import SEOScorer, category_for, grade_for


@pytest.fixture
def scorer():
    return SEOScorer()


@pytest.fixture
def clean_page():
    """A page with no issues and no bonuses: scores exactly 100."""
    return PageFeatures(
        url="https://example.com/",
        title="A" * 40,
        description="D" * 140,
        h1=["Main heading"],
        heading_score=100,
        has_https=True,
        favicon=True,
        has_open_graph=True,
        viewport=True,
        word_count=500,
        word_count_content_only=500,
        strong_tags=3,
    )


class TestGradeAndCategory:
    """Test suite for grade/category thresholds."""

    @pytest.mark.parametrize("score,grade", [
        (100, "A"), (90, "A"), (89, "B"), (80, "B"), (79, "C"),
        (70, "C"), (69, "D"), (60, "D"), (59, "F"), (0, "F"),
    ])
    def test_grade_boundaries(self, score, grade):
        assert grade_for(score) == grade

    @pytest.mark.parametrize("score,category", [
        (85, "Excellent"), (84, "Good"), (70, "Good"), (69, "Needs Improvement"),
        (50, "Needs Improvement"), (49, "Poor"),
    ])
    def test_category_boundaries(self, score, category):
        assert category_for(score) == category


class TestSEOScorer:
    """Test suite for SEOScorer."""

    def test_clean_page_scores_100(self, scorer, clean_page):
        result = scorer.score(clean_page)
        assert result.score == 100
        assert result.issues == ()

    def test_short_title_page(self, scorer):
        """Short title, no description, no favicon/OpenGraph, thin content."""
        page = PageFeatures(
            url="https://example.com/",
            title="Hello",
            h1=["Welcome"],
            has_https=True,
            viewport=True,
            word_count=100,
            word_count_content_only=100,
        )

        result = scorer.score(page)

        assert result.score == 58
        assert result.grade == "F"
        assert result.category == "Needs Improvement"
        assert result.issues == (
            "missing/short title",
            "missing/short meta description",
            "no favicon",
            "no OpenGraph",
            "very low word count",
        )
        assert result.notes == (
            "Issues: missing/short title, missing/short meta description, no favicon, "
            "no OpenGraph, very low word count | Strengths: HTTPS enabled, proper H1 structure"
        )

    def test_well_optimized_page_is_clamped(self, scorer):
        """Bonuses push the raw score above 100; the result is clamped."""
        page = PageFeatures(
            url="https://example.com/",
            title="T" * 45,
            description="D" * 140,
            h1=["Main"],
            h2=["First", "Second"],
            h3=["Detail"],
            has_https=True,
            favicon=True,
            has_open_graph=True,
            viewport=True,
            canonical_url="https://example.com/",
            has_json_ld=True,
            word_count=900,
            word_count_content_only=900,
            strong_tags=4,
        )

        result = scorer.score(page)

        assert result.score == 100
        assert result.grade == "A"
        assert result.category == "Excellent"

    def test_pure_function(self, scorer, clean_page):
        page = replace(clean_page, title="", images_without_alt=3)
        assert scorer.score(page) == scorer.score(page)

    @pytest.mark.parametrize("length,expected,issue", [
        (0, 85, "missing/short title"),
        (9, 85, "missing/short title"),
        (10, 95, "title could be longer"),
        (29, 95, "title could be longer"),
        (30, 100, None),
        (60, 100, None),
        (61, 92, "title too long"),
    ])
    def test_title_rules(self, scorer, clean_page, length, expected, issue):
        result = scorer.score(replace(clean_page, title="x" * length))
        assert result.score == expected
        if issue:
            assert issue in result.issues

    @pytest.mark.parametrize("length,expected", [(0, 88), (119, 88), (120, 100), (160, 100), (161, 94)])
    def test_description_rules(self, scorer, clean_page, length, expected):
        assert scorer.score(replace(clean_page, description="x" * length)).score == expected

    @pytest.mark.parametrize("heading_score,expected,flagged", [
        (100, 100, False),
        (50, 90, False),
        (49, 89, True),
        (0, 80, True),
    ])
    def test_heading_score_mapping(self, scorer, clean_page, heading_score, expected, flagged):
        result = scorer.score(replace(clean_page, heading_score=heading_score))
        assert result.score == expected
        assert ("poor heading structure" in result.issues) is flagged

    def test_fallback_heading_rules(self, scorer, clean_page):
        page = replace(clean_page, heading_score=None, h1=[])
        result = scorer.score(page)
        assert result.score == 82
        assert "missing H1" in result.issues

        page = replace(clean_page, heading_score=None, h1=["a", "b"], h2=["c"], h3=["d"])
        result = scorer.score(page)
        assert result.score == 89
        assert "multiple H1 tags" in result.issues

    def test_robots_directives(self, scorer, clean_page):
        result = scorer.score(replace(clean_page, x_robots="noindex"))
        assert result.score == 85
        assert "page set to noindex" in result.issues

        result = scorer.score(replace(clean_page, meta_robots="index, NOFOLLOW"))
        assert result.score == 95
        assert "page set to nofollow" in result.issues

    def test_technical_penalties(self, scorer, clean_page):
        page = replace(clean_page, has_https=False, favicon=False, has_open_graph=False, viewport=False)
        assert scorer.score(page).score == 100 - 10 - 3 - 4 - 3

    @pytest.mark.parametrize("words,strong,expected", [
        (149, 1, 92),
        (150, 1, 95),
        (299, 1, 95),
        (300, 1, 100),
        (800, 1, 100),  # +2 clamped
        (250, 0, 93),  # low word count and no emphasis
        (200, 0, 95),  # emphasis only required above 200 words
    ])
    def test_content_rules(self, scorer, clean_page, words, strong, expected):
        page = replace(clean_page, word_count_content_only=words, strong_tags=strong)
        assert scorer.score(page).score == expected

    def test_rich_content_bonus(self, scorer, clean_page):
        page = replace(clean_page, title="x" * 20, word_count_content_only=800)
        assert scorer.score(page).score == 97

    def test_image_alt_penalty_is_capped(self, scorer, clean_page):
        result = scorer.score(replace(clean_page, images_without_alt=10))
        assert result.score == 95
        assert "10 images without alt text" in result.issues

        result = scorer.score(replace(clean_page, images_without_alt=2))
        assert result.score == 98

    def test_bonuses(self, scorer, clean_page):
        page = replace(
            clean_page,
            title="x" * 20,  # -5
            has_schema=True,
            hreflang=["de"],
            apple_touch_icon=True,
        )
        assert scorer.score(page).score == 100 - 5 + 2 + 1 + 1

    def test_performance_penalties(self, scorer, clean_page):
        result = scorer.score(replace(clean_page, javascript_files=21, css_files=11))
        assert result.score == 95
        assert "too many JS files" in result.issues
        assert "too many CSS files" in result.issues

        assert scorer.score(replace(clean_page, javascript_files=20, css_files=10)).score == 100

    def test_score_floor(self, scorer):
        page = PageFeatures(
            url="http://example.com/",
            meta_robots="noindex,nofollow",
            images_without_alt=50,
            javascript_files=40,
            css_files=40,
        )
        result = scorer.score(page)
        assert result.score == 0
        assert result.grade == "F"
        assert result.category == "Poor"

    def test_notes_strengths_only(self, scorer, clean_page):
        assert scorer.score(clean_page).notes == (
            "Strengths: HTTPS enabled, OpenGraph present, good content length, proper H1 structure"
        )

    def test_notes_issues_and_strengths(self, scorer):
        page = PageFeatures(
            url="http://example.com/",
            title="x" * 40,
            description="x" * 140,
            heading_score=100,
            favicon=True,
            has_open_graph=True,
            viewport=True,
            word_count_content_only=400,
            strong_tags=1,
            has_https=False,
        )
        assert scorer.score(page).notes == "Issues: no HTTPS | Strengths: OpenGraph present"

    def test_notes_without_issues(self, scorer):
        page = PageFeatures(
            url="http://example.com/",
            title="x" * 40,
            description="x" * 140,
            heading_score=100,
            favicon=True,
            viewport=True,
            word_count_content_only=400,
            strong_tags=1,
            has_https=True,
            has_open_graph=True,
        )
        result = scorer.score(page)
        assert result.issues == ()
        assert result.notes == "Strengths: HTTPS enabled, OpenGraph present"

    def test_custom_thresholds(self, clean_page):
        scorer = SEOScorer(ScoringThresholds(title_max=30))
        result = scorer.score(clean_page)
        assert "title too long" in result.issues

    def test_to_dict(self, scorer, clean_page):
        record = scorer.score(replace(clean_page, favicon=False)).to_dict()
        assert record["seo_page_score"] == 97
        assert record["seo_grade"] == "A"
        assert record["seo_category"] == "Excellent"
        assert record["seo_issues_count"] == 1
        assert record["issues"] == ["no favicon"]
