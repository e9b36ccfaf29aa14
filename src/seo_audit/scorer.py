"""Page score, grade and issue list from extracted features."""

import math
from typing import List, Optional

from seo_audit.config import ScoringThresholds, default_thresholds
from seo_audit.constants import (
    MAX_SCORE,
    GRADE_THRESHOLDS,
    FAILING_GRADE,
    CATEGORY_THRESHOLDS,
    LOWEST_CATEGORY,
)
from seo_audit.models import PageFeatures, ScoreResult


def grade_for(score: float) -> str:
    """Letter grade: 90+ A, 80+ B, 70+ C, 60+ D, otherwise F."""
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return FAILING_GRADE


def category_for(score: float) -> str:
    """Category: 85+ Excellent, 70+ Good, 50+ Needs Improvement, otherwise Poor."""
    for minimum, category in CATEGORY_THRESHOLDS:
        if score >= minimum:
            return category
    return LOWEST_CATEGORY


class SEOScorer:
    """
    Score a page out of 100.

    Every rule is an independent penalty or bonus applied to a starting
    score of 100; the result is rounded and clamped to 0-100. Scoring is a
    pure function of the PageFeatures.
    """

    def __init__(self, thresholds: Optional[ScoringThresholds] = None):
        self.thresholds = thresholds or default_thresholds

    def score(self, features: PageFeatures) -> ScoreResult:
        """
        Score one page.

        Args:
            features: Extracted page features

        Returns:
            ScoreResult with score, grade, category, issues and notes
        """
        issues: List[str] = []
        score = MAX_SCORE

        score += self._title(features, issues)
        score += self._description(features, issues)
        score += self._headings(features, issues)
        score += self._technical(features, issues)
        score += self._content(features, issues)
        score += self._images(features, issues)
        score += self._bonuses(features)
        score += self._performance(features, issues)

        final_score = max(0, min(MAX_SCORE, round(score)))

        return ScoreResult(
            score=final_score,
            grade=grade_for(final_score),
            category=category_for(final_score),
            issues=tuple(issues),
            notes=self.notes(features, issues),
        )

    def _title(self, features: PageFeatures, issues: List[str]) -> int:
        t = self.thresholds
        length = features.title_length
        if not features.title or length < t.title_min:
            issues.append('missing/short title')
            return -15
        if length > t.title_max:
            issues.append('title too long')
            return -8
        if length < t.title_short:
            issues.append('title could be longer')
            return -5
        return 0

    def _description(self, features: PageFeatures, issues: List[str]) -> int:
        t = self.thresholds
        length = features.description_length
        if not features.description or length < t.description_min:
            issues.append('missing/short meta description')
            return -12
        if length > t.description_max:
            issues.append('meta description too long')
            return -6
        return 0

    def _headings(self, features: PageFeatures, issues: List[str]) -> int:
        if features.heading_score is not None:
            # 100 maps to 0, 0 maps to -20
            if features.heading_score < self.thresholds.heading_score_issue_floor:
                issues.append('poor heading structure')
            return math.floor(features.heading_score * 0.2) - 20

        h1, h2, h3 = features.h1_count, features.h2_count, features.h3_count
        delta = 0
        if h1 == 0:
            issues.append('missing H1')
            delta -= 18
        elif h1 > 1:
            issues.append('multiple H1 tags')
            delta -= 12

        if h1 == 1 and h2 > 0:
            delta += 2
        if h2 > 0 and h3 > 0:
            delta += 1
        return delta

    def _technical(self, features: PageFeatures, issues: List[str]) -> int:
        delta = 0
        if not features.has_https:
            issues.append('no HTTPS')
            delta -= 10

        robots = f"{features.x_robots} {features.meta_robots}".lower()
        if 'noindex' in robots:
            issues.append('page set to noindex')
            delta -= 15
        if 'nofollow' in robots:
            issues.append('page set to nofollow')
            delta -= 5

        if not features.favicon:
            issues.append('no favicon')
            delta -= 3
        if not features.has_open_graph:
            issues.append('no OpenGraph')
            delta -= 4
        if not features.viewport:
            issues.append('no viewport meta')
            delta -= 3
        return delta

    def _content(self, features: PageFeatures, issues: List[str]) -> int:
        t = self.thresholds
        words = features.word_count_content_only
        delta = 0

        if words < t.very_thin_content_words:
            issues.append('very low word count')
            delta -= 8
        elif words < t.thin_content_words:
            issues.append('low word count')
            delta -= 5
        elif words >= t.rich_content_words:
            delta += 2

        if features.strong_tags == 0 and words > t.emphasis_min_words:
            issues.append('no emphasis tags')
            delta -= 2
        return delta

    def _images(self, features: PageFeatures, issues: List[str]) -> int:
        missing = features.images_without_alt
        if missing <= 0:
            return 0
        issues.append(f'{missing} images without alt text')
        return -min(self.thresholds.image_alt_penalty_cap, missing)

    def _bonuses(self, features: PageFeatures) -> int:
        bonus = 0
        if features.has_schema or features.has_json_ld:
            bonus += 2
        if features.has_canonical:
            bonus += 1
        if features.has_hreflang:
            bonus += 1
        if features.apple_touch_icon:
            bonus += 1
        return bonus

    def _performance(self, features: PageFeatures, issues: List[str]) -> int:
        t = self.thresholds
        delta = 0
        if features.javascript_files > t.max_script_files:
            issues.append('too many JS files')
            delta -= 3
        if features.css_files > t.max_stylesheet_files:
            issues.append('too many CSS files')
            delta -= 2
        return delta

    def notes(self, features: PageFeatures, issues: List[str]) -> str:
        """Human-readable summary: "Issues: ... | Strengths: ..."."""
        strengths = []
        if features.has_https:
            strengths.append('HTTPS enabled')
        if features.has_open_graph:
            strengths.append('OpenGraph present')
        if features.word_count >= self.thresholds.good_content_words:
            strengths.append('good content length')
        if features.h1_count == 1:
            strengths.append('proper H1 structure')

        sections = []
        if issues:
            sections.append(f"Issues: {', '.join(issues)}")
        if strengths:
            sections.append(f"Strengths: {', '.join(strengths)}")
        return " | ".join(sections)
