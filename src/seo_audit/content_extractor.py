"""Content, heading and meta extraction from a parsed document."""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from bs4 import BeautifulSoup, Tag
from bs4.element import (
    CData,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
)

from seo_audit.constants import (
    CHROME_TAGS,
    CHROME_CLASSES,
    CHROME_IDS,
    CHROME_SUBSTRING_TAGS,
    CHROME_SUBSTRINGS,
    NON_VISIBLE_TAGS,
    HEADING_TAGS,
    LOREM_IPSUM_PATTERNS,
    MIN_TITLE_WORD_LENGTH,
)
from seo_audit.models import HeadingEntry, OpenGraphData

# Text nodes that never count as words
NON_TEXT_NODES = (Comment, Declaration, Doctype, CData, ProcessingInstruction)

LOREM_REGEXES = tuple(re.compile(p, re.IGNORECASE) for p in LOREM_IPSUM_PATTERNS)

# og:image:* properties attach to the most recent og:image
OG_IMAGE_DETAILS = {
    'og:image:width': 'width',
    'og:image:height': 'height',
    'og:image:type': 'type',
    'og:image:alt': 'alt',
}
OG_SIMPLE_FIELDS = {
    'og:title': 'title',
    'og:description': 'description',
    'og:url': 'url',
    'og:site_name': 'site_name',
    'og:type': 'type',
    'og:locale': 'locale',
}


@dataclass
class WordCounts:
    total: int = 0  # whole serialized markup
    content_only: int = 0  # chrome, scripts and styles removed
    visible: int = 0  # scripts and styles removed


@dataclass
class HeadingSummary:
    by_level: Dict[int, List[str]] = field(default_factory=dict)
    structure: List[HeadingEntry] = field(default_factory=list)
    score: int = 0

    def texts(self, level: int) -> List[str]:
        return list(self.by_level.get(level, []))


@dataclass
class TechnicalFlags:
    has_https: bool = False
    favicon: bool = False
    apple_touch_icon: bool = False
    viewport: bool = False
    charset: bool = False
    canonical_url: str = ""
    hreflang: List[str] = field(default_factory=list)
    has_amp: bool = False
    has_google_analytics: bool = False
    javascript_files: int = 0
    css_files: int = 0
    iframes: int = 0


@dataclass
class MetaTags:
    title: str = ""
    all_titles: List[str] = field(default_factory=list)
    description: str = ""
    language: str = ""
    meta_robots: str = ""
    x_robots: str = ""
    has_twitter_cards: bool = False


@dataclass
class OpenGraphSummary:
    tags: Dict[str, str] = field(default_factory=dict)
    data: OpenGraphData = field(default_factory=OpenGraphData)

    @property
    def has_open_graph(self) -> bool:
        return bool(self.tags)


@dataclass
class StructuredDataFlags:
    has_json_ld: bool = False
    has_microdata: bool = False
    has_schema: bool = False


def count_words(text: str) -> int:
    """Number of whitespace-separated tokens."""
    return len(text.split())


def _rel_values(tag: Tag) -> List[str]:
    rel = tag.get('rel') or []
    if isinstance(rel, str):
        rel = rel.split()
    return [value.lower() for value in rel]


def _class_values(tag: Tag) -> List[str]:
    classes = tag.get('class') or []
    if isinstance(classes, str):
        classes = classes.split()
    return [value.lower() for value in classes]


def _attr_lower(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip().lower()


def is_page_chrome(tag: Tag) -> bool:
    """Best-effort match for header/footer/navigation/sidebar elements.

    Matches structural tag names, a fixed set of class and id names, and any
    div/section whose class or id contains "header" or "footer".
    """
    name = (tag.name or "").lower()
    if name in CHROME_TAGS:
        return True

    classes = _class_values(tag)
    if any(c in CHROME_CLASSES for c in classes):
        return True

    element_id = _attr_lower(tag, 'id')
    if element_id in CHROME_IDS:
        return True

    if name in CHROME_SUBSTRING_TAGS:
        class_text = " ".join(classes)
        for marker in CHROME_SUBSTRINGS:
            if marker in class_text or marker in element_id:
                return True

    return False


def is_non_visible(tag: Tag) -> bool:
    return (tag.name or "").lower() in NON_VISIBLE_TAGS


class ContentExtractor:
    """Derives word counts, headings and meta/technical flags from a document.

    Every method reads the parsed tree; nothing is removed or cloned.
    """

    def word_counts(self, soup: BeautifulSoup) -> WordCounts:
        return WordCounts(
            total=count_words(str(soup)),
            content_only=count_words(self.text_excluding(soup, is_page_chrome)),
            visible=count_words(self.visible_text(soup)),
        )

    def visible_text(self, soup: BeautifulSoup) -> str:
        """Body text without script and style contents."""
        return self.text_excluding(soup, is_non_visible)

    def text_excluding(self, soup: BeautifulSoup, exclude: Callable[[Tag], bool]) -> str:
        """Concatenate body text nodes whose ancestors all pass the predicate."""
        root = soup.body or soup
        pieces = []
        for node in root.descendants:
            if not isinstance(node, NavigableString) or isinstance(node, NON_TEXT_NODES):
                continue
            if any(exclude(parent) for parent in node.parents if isinstance(parent, Tag)):
                continue
            pieces.append(str(node))
        return "".join(pieces)

    def headings(self, soup: BeautifulSoup, title: str = "") -> HeadingSummary:
        """Collect heading texts per level plus the document-order structure."""
        by_level: Dict[int, List[str]] = {}
        for level, tag_name in enumerate(HEADING_TAGS, start=1):
            texts = [h.get_text().strip() for h in soup.find_all(tag_name)]
            by_level[level] = [t for t in texts if t]

        structure = self.heading_structure(soup)
        return HeadingSummary(
            by_level=by_level,
            structure=structure,
            score=self.heading_score(structure, title),
        )

    def heading_structure(self, soup: BeautifulSoup) -> List[HeadingEntry]:
        entries: List[HeadingEntry] = []
        for element in soup.find_all(list(HEADING_TAGS)):
            text = element.get_text().strip()
            if not text:
                continue
            tag = element.name.lower()
            entries.append(HeadingEntry(
                tag=tag,
                level=int(tag[1]),
                text=text,
                position=len(entries) + 1,
            ))
        return entries

    def heading_score(self, headings: List[HeadingEntry], title: str = "") -> int:
        """Score heading quality on a 0-100 scale.

        - H1 presence (20): exactly one H1 scores 20, several score 10.
        - Hierarchy (30): -5 per skipped level, -2 for each heading beyond two
          consecutive headings of the same level, plus 5 per level of depth
          (max 20), floored at 0 and capped at 30.
        - Title relevance (20): any heading shares a word with the title.
        - Distribution (30): 15 for at least 3 headings, then 10 more for at
          least two H2 and 5 more for at least three H3.
        """
        score = 0

        h1_count = sum(1 for h in headings if h.level == 1)
        if h1_count == 1:
            score += 20
        elif h1_count > 1:
            score += 10

        hierarchy = 0
        previous_level = 0
        consecutive_same_level = 0
        deepest = 0
        for heading in headings:
            if previous_level != 0 and heading.level > previous_level + 1:
                hierarchy -= 5
            elif heading.level == previous_level:
                consecutive_same_level += 1
                if consecutive_same_level > 2:
                    hierarchy -= 2
            else:
                consecutive_same_level = 0
            previous_level = heading.level
            deepest = max(deepest, heading.level)

        hierarchy += min(deepest * 5, 20)
        score += min(max(hierarchy, 0), 30)

        if title:
            title_words = set(title.lower().split())
            if any(title_words.intersection(h.text.lower().split()) for h in headings):
                score += 20

        h2_count = sum(1 for h in headings if h.level == 2)
        h3_count = sum(1 for h in headings if h.level == 3)
        if len(headings) >= 3:
            score += 15
            if h2_count >= 2:
                score += 10
            if h3_count >= 3:
                score += 5

        return max(0, min(100, score))

    def detect_lorem_ipsum(self, text: str) -> bool:
        if not text:
            return False
        return any(pattern.search(text) for pattern in LOREM_REGEXES)

    def meta_tags(self, soup: BeautifulSoup) -> MetaTags:
        all_titles = [t.get_text().strip() for t in soup.find_all('title')]
        all_titles = [t for t in all_titles if t]
        title_tag = soup.find('title')

        html_tag = soup.find('html')
        language = (html_tag.get('lang') or "") if html_tag else ""
        if not language:
            language = self._http_equiv(soup, 'content-language')

        return MetaTags(
            title=title_tag.get_text().strip() if title_tag else "",
            all_titles=all_titles,
            description=self._meta_name(soup, 'description'),
            language=language.strip(),
            meta_robots=self._meta_name(soup, 'robots'),
            x_robots=self._http_equiv(soup, 'x-robots-tag'),
            has_twitter_cards=any(
                _attr_lower(meta, 'name').startswith('twitter:')
                for meta in soup.find_all('meta', attrs={'name': True})
            ),
        )

    def technical_flags(self, soup: BeautifulSoup, url: str) -> TechnicalFlags:
        links = soup.find_all('link', rel=True)
        rels = [(link, _rel_values(link)) for link in links]

        canonical = next((link for link, rel in rels if 'canonical' in rel), None)
        hreflang = [
            link.get('hreflang') for link, rel in rels
            if 'alternate' in rel and link.get('hreflang')
        ]

        scripts = soup.find_all('script')
        inline_script_text = "".join(s.get_text() for s in scripts)
        has_google_analytics = (
            'google-analytics' in inline_script_text
            or 'gtag' in inline_script_text
            or any('google-analytics' in (s.get('src') or '') for s in scripts)
        )

        return TechnicalFlags(
            has_https=url.startswith('https://'),
            favicon=any('icon' in rel for _, rel in rels),
            apple_touch_icon=any('apple-touch-icon' in rel for _, rel in rels),
            viewport=bool(self._find_meta_name(soup, 'viewport')),
            charset=bool(
                soup.find('meta', charset=True)
                or self._find_http_equiv(soup, 'content-type')
            ),
            canonical_url=(canonical.get('href') or "").strip() if canonical else "",
            hreflang=hreflang,
            has_amp=any('amphtml' in rel for _, rel in rels),
            has_google_analytics=has_google_analytics,
            javascript_files=sum(1 for s in scripts if s.get('src')),
            css_files=sum(1 for _, rel in rels if 'stylesheet' in rel),
            iframes=len(soup.find_all('iframe')),
        )

    def open_graph(self, soup: BeautifulSoup) -> OpenGraphSummary:
        summary = OpenGraphSummary()
        data = summary.data

        for meta in soup.find_all('meta', attrs={'property': True}):
            prop = _attr_lower(meta, 'property')
            content = meta.get('content')
            if not prop.startswith('og:') or not content:
                continue

            summary.tags[prop] = content
            if prop in OG_SIMPLE_FIELDS:
                setattr(data, OG_SIMPLE_FIELDS[prop], content)
            elif prop == 'og:image':
                data.image = content
                data.images.append({'url': content, 'alt': None, 'width': None, 'height': None, 'type': None})
            elif prop in OG_IMAGE_DETAILS and data.images:
                data.images[-1][OG_IMAGE_DETAILS[prop]] = content

        return summary

    def structured_data(self, soup: BeautifulSoup) -> StructuredDataFlags:
        json_ld = soup.find('script', attrs={'type': re.compile(r'^application/ld\+json$', re.I)})
        return StructuredDataFlags(
            has_json_ld=json_ld is not None,
            has_microdata=soup.find(attrs={'itemscope': True}) is not None,
            has_schema=soup.find(attrs={'itemtype': True}) is not None,
        )

    def paragraph_count(self, soup: BeautifulSoup) -> int:
        return len(soup.find_all('p'))

    def emphasis_count(self, soup: BeautifulSoup) -> int:
        return len(soup.find_all(['strong', 'b']))

    def title_duplicate_words(self, title: str) -> int:
        """Number of distinct title words (3+ chars) that appear more than once."""
        if not title:
            return 0
        words = [w for w in title.lower().split() if len(w) >= MIN_TITLE_WORD_LENGTH]
        return sum(1 for count in Counter(words).values() if count >= 2)

    def _find_meta_name(self, soup: BeautifulSoup, name: str) -> Optional[Tag]:
        for meta in soup.find_all('meta', attrs={'name': True}):
            if _attr_lower(meta, 'name') == name:
                return meta
        return None

    def _find_http_equiv(self, soup: BeautifulSoup, name: str) -> Optional[Tag]:
        for meta in soup.find_all('meta', attrs={'http-equiv': True}):
            if _attr_lower(meta, 'http-equiv') == name:
                return meta
        return None

    def _meta_name(self, soup: BeautifulSoup, name: str) -> str:
        meta = self._find_meta_name(soup, name)
        return (meta.get('content') or "").strip() if meta else ""

    def _http_equiv(self, soup: BeautifulSoup, name: str) -> str:
        meta = self._find_http_equiv(soup, name)
        return (meta.get('content') or "").strip() if meta else ""
