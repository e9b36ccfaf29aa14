"""Centralized constants for the SEO audit.

This module contains magic numbers and lookup tables that are used across
multiple modules. For user-configurable values, see config.py and
ScoringThresholds / AuditConfig.
"""

# =============================================================================
# Crawler Constants
# =============================================================================

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SEO-Audit/1.0)"

# Request timeouts in seconds
DEFAULT_PAGE_TIMEOUT_SECONDS = 30
DEFAULT_IMAGE_TIMEOUT_SECONDS = 5
DEFAULT_LINK_TIMEOUT_SECONDS = 10
DEFAULT_SITEMAP_TIMEOUT_SECONDS = 10
DEFAULT_CERTIFICATE_TIMEOUT_SECONDS = 10

DEFAULT_MAX_REDIRECTS = 5
IMAGE_PROBE_MAX_REDIRECTS = 3

# Default pages to analyze per audit run
DEFAULT_MAX_PAGES = 5

# Sentinel meaning "process every image on the page"
UNLIMITED_IMAGES = -1

# Liveness / metadata probes run in batches with a pause in between
DEFAULT_PROBE_BATCH_SIZE = 5
DEFAULT_PROBE_BATCH_DELAY_SECONDS = 0.1

PAGE_ACCEPT_HEADER = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
)
SITEMAP_ACCEPT_HEADER = "application/xml, text/xml, application/xhtml+xml, text/html, */*"

# Redirect statuses followed manually when resolving the sitemap location
REDIRECT_STATUS_CODES = (301, 302, 307, 308)

# Status codes reported for transport failures
STATUS_HOST_UNREACHABLE = 404
STATUS_TIMEOUT = 408
STATUS_CONNECTION_RESET = 503
STATUS_UNKNOWN_ERROR = 500


# =============================================================================
# Sitemap Constants
# =============================================================================

DEFAULT_SITEMAP_MAX_DEPTH = 10

SITEMAP_TYPE_URLSET = "urlset"
SITEMAP_TYPE_INDEX = "sitemap_index"
SITEMAP_TYPE_ROBOTS = "robots_txt_reference"


# =============================================================================
# Link Constants
# =============================================================================

# Social networks and URL shorteners; links to these hosts are not counted
# as external SEO links.
SOCIAL_MEDIA_DOMAINS = frozenset({
    'facebook.com', 'fb.com', 'm.facebook.com',
    'twitter.com', 't.co', 'x.com',
    'instagram.com', 'linkedin.com',
    'youtube.com', 'youtu.be',
    'pinterest.com', 'tiktok.com',
    'snapchat.com', 'whatsapp.com',
    'telegram.org', 'discord.com',
    'reddit.com', 'tumblr.com',
    'flickr.com', 'vimeo.com',
    'medium.com', 'github.com',
    'bit.ly', 'tinyurl.com', 'goo.gl',
})

# Schemes that never get a network probe and are always considered reachable
ALWAYS_VALID_LINK_SCHEMES = ('tel:', 'sms:', 'whatsapp:')

EMAIL_PATTERN = r'^[^\s@]+@[^\s@]+\.[^\s@]+$'


# =============================================================================
# Image Constants
# =============================================================================

UNKNOWN_IMAGE_TYPE = "unknown"

IMAGE_MIME_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'svg': 'image/svg+xml',
    'bmp': 'image/bmp',
    'ico': 'image/x-icon',
    'tiff': 'image/tiff',
    'tif': 'image/tiff',
    'avif': 'image/avif',
    'heic': 'image/heic',
    'heif': 'image/heif',
}


# =============================================================================
# Content Constants
# =============================================================================

LOREM_IPSUM_PATTERNS = (
    r'lorem\s+ipsum',
    r'dolor\s+sit\s+amet',
    r'consectetur\s+adipiscing',
    r'sed\s+do\s+eiusmod',
)

# Elements dropped for the content-only word count
CHROME_TAGS = frozenset({'header', 'footer', 'nav', 'aside', 'script', 'style'})
CHROME_CLASSES = frozenset({
    'header', 'footer', 'site-header', 'site-footer', 'main-header',
    'main-footer', 'sidebar', 'widget', 'menu', 'navigation',
})
CHROME_IDS = frozenset({'header', 'footer'})
# Containers whose class/id is matched by substring
CHROME_SUBSTRING_TAGS = frozenset({'div', 'section'})
CHROME_SUBSTRINGS = ('header', 'footer')

# Elements dropped for the visible word count
NON_VISIBLE_TAGS = frozenset({'script', 'style'})

HEADING_TAGS = ('h1', 'h2', 'h3', 'h4', 'h5', 'h6')

# Title words shorter than this are ignored for duplicate detection
MIN_TITLE_WORD_LENGTH = 3


# =============================================================================
# Scoring Constants
# =============================================================================

MAX_SCORE = 100

# (minimum score, label), checked top to bottom
GRADE_THRESHOLDS = (
    (90, 'A'),
    (80, 'B'),
    (70, 'C'),
    (60, 'D'),
)
FAILING_GRADE = 'F'

CATEGORY_THRESHOLDS = (
    (85, 'Excellent'),
    (70, 'Good'),
    (50, 'Needs Improvement'),
)
LOWEST_CATEGORY = 'Poor'


# =============================================================================
# Certificate Constants
# =============================================================================

CERTIFICATE_EXPIRY_WARNING_DAYS = 30
CERTIFICATE_UNKNOWN = "Unknown"


# =============================================================================
# Report Constants
# =============================================================================

DATA_SOURCE = "seo_audit"
SEO_ENGINE_VERSION = "1.0.0"
DATA_FORMAT_VERSION = "2.0"


# =============================================================================
# Logging Constants
# =============================================================================

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# HTTP client loggers that log every request; kept at WARNING unless the
# audit itself runs at DEBUG
HTTP_CLIENT_LOGGERS = ('urllib3', 'httpx', 'httpcore')
