from dotenv import load_dotenv
from dataclasses import dataclass
from pathlib import Path
import json
import os

from seo_audit.constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_PAGE_TIMEOUT_SECONDS,
    DEFAULT_IMAGE_TIMEOUT_SECONDS,
    DEFAULT_LINK_TIMEOUT_SECONDS,
    DEFAULT_SITEMAP_TIMEOUT_SECONDS,
    DEFAULT_CERTIFICATE_TIMEOUT_SECONDS,
    DEFAULT_MAX_PAGES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_PROBE_BATCH_SIZE,
    DEFAULT_PROBE_BATCH_DELAY_SECONDS,
    DEFAULT_SITEMAP_MAX_DEPTH,
    UNLIMITED_IMAGES,
)

load_dotenv()  # Loads variables from .env file


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    USER_AGENT = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE")


settings = Settings()


@dataclass
class AuditConfig:
    """Configuration for an audit run."""
    user_agent: str = DEFAULT_USER_AGENT
    page_timeout: float = DEFAULT_PAGE_TIMEOUT_SECONDS
    image_timeout: float = DEFAULT_IMAGE_TIMEOUT_SECONDS
    link_timeout: float = DEFAULT_LINK_TIMEOUT_SECONDS
    sitemap_timeout: float = DEFAULT_SITEMAP_TIMEOUT_SECONDS
    certificate_timeout: float = DEFAULT_CERTIFICATE_TIMEOUT_SECONDS
    max_pages: int = DEFAULT_MAX_PAGES
    crawl_urls: bool = True
    include_images: bool = True
    max_images_per_page: int = UNLIMITED_IMAGES  # -1 processes every image
    check_links: bool = True
    include_sitemap: bool = True
    include_certificate: bool = True
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    probe_batch_size: int = DEFAULT_PROBE_BATCH_SIZE
    probe_batch_delay: float = DEFAULT_PROBE_BATCH_DELAY_SECONDS
    sitemap_max_depth: int = DEFAULT_SITEMAP_MAX_DEPTH
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AuditConfig":
        """Load configuration from environment variables.

        Variables are prefixed with SEO_AUDIT_, e.g. SEO_AUDIT_MAX_PAGES=10.
        USER_AGENT and LOG_LEVEL are shared with Settings.

        Returns:
            AuditConfig: Configuration instance with values from environment
        """
        return cls(
            user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
            page_timeout=float(os.getenv("SEO_AUDIT_PAGE_TIMEOUT", DEFAULT_PAGE_TIMEOUT_SECONDS)),
            image_timeout=float(os.getenv("SEO_AUDIT_IMAGE_TIMEOUT", DEFAULT_IMAGE_TIMEOUT_SECONDS)),
            link_timeout=float(os.getenv("SEO_AUDIT_LINK_TIMEOUT", DEFAULT_LINK_TIMEOUT_SECONDS)),
            sitemap_timeout=float(os.getenv("SEO_AUDIT_SITEMAP_TIMEOUT", DEFAULT_SITEMAP_TIMEOUT_SECONDS)),
            certificate_timeout=float(
                os.getenv("SEO_AUDIT_CERTIFICATE_TIMEOUT", DEFAULT_CERTIFICATE_TIMEOUT_SECONDS)
            ),
            max_pages=int(os.getenv("SEO_AUDIT_MAX_PAGES", DEFAULT_MAX_PAGES)),
            crawl_urls=_env_bool("SEO_AUDIT_CRAWL_URLS", True),
            include_images=_env_bool("SEO_AUDIT_INCLUDE_IMAGES", True),
            max_images_per_page=int(os.getenv("SEO_AUDIT_MAX_IMAGES_PER_PAGE", UNLIMITED_IMAGES)),
            check_links=_env_bool("SEO_AUDIT_CHECK_LINKS", True),
            include_sitemap=_env_bool("SEO_AUDIT_INCLUDE_SITEMAP", True),
            include_certificate=_env_bool("SEO_AUDIT_INCLUDE_CERTIFICATE", True),
            max_redirects=int(os.getenv("SEO_AUDIT_MAX_REDIRECTS", DEFAULT_MAX_REDIRECTS)),
            probe_batch_size=int(os.getenv("SEO_AUDIT_PROBE_BATCH_SIZE", DEFAULT_PROBE_BATCH_SIZE)),
            probe_batch_delay=float(
                os.getenv("SEO_AUDIT_PROBE_BATCH_DELAY", DEFAULT_PROBE_BATCH_DELAY_SECONDS)
            ),
            sitemap_max_depth=int(os.getenv("SEO_AUDIT_SITEMAP_MAX_DEPTH", DEFAULT_SITEMAP_MAX_DEPTH)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@dataclass
class ScoringThresholds:
    """Configurable thresholds for the page score."""

    # Title (characters)
    title_min: int = 10
    title_short: int = 30
    title_max: int = 60

    # Meta description (characters)
    description_min: int = 120
    description_max: int = 160

    # Content (content-only words)
    very_thin_content_words: int = 150
    thin_content_words: int = 300
    rich_content_words: int = 800
    emphasis_min_words: int = 200  # Pages above this should use <strong>/<b>

    # Headings
    heading_score_issue_floor: int = 50

    # Images
    image_alt_penalty_cap: int = 5

    # Resources
    max_script_files: int = 20
    max_stylesheet_files: int = 10

    # Strength labels
    good_content_words: int = 500

    @classmethod
    def from_env(cls) -> "ScoringThresholds":
        """Load thresholds from environment variables.

        Environment variables should be prefixed with SEO_THRESHOLD_
        e.g., SEO_THRESHOLD_TITLE_MAX=70

        Returns:
            ScoringThresholds with values from environment
        """
        thresholds = cls()
        prefix = "SEO_THRESHOLD_"

        for field_name in thresholds.__dataclass_fields__:
            env_value = os.getenv(f"{prefix}{field_name.upper()}")
            if env_value is None:
                continue
            try:
                setattr(thresholds, field_name, int(env_value))
            except ValueError:
                pass  # Keep default if conversion fails

        return thresholds

    @classmethod
    def from_file(cls, path: str) -> "ScoringThresholds":
        """Load thresholds from a JSON configuration file.

        Args:
            path: Path to JSON configuration file

        Returns:
            ScoringThresholds with values from file
        """
        thresholds = cls()
        file_path = Path(path)

        if not file_path.exists():
            return thresholds

        with open(file_path, 'r') as f:
            config = json.load(f)

        threshold_config = config.get('thresholds', config)

        for field_name in thresholds.__dataclass_fields__:
            if field_name in threshold_config:
                setattr(thresholds, field_name, threshold_config[field_name])

        return thresholds

    def to_dict(self) -> dict:
        """Convert thresholds to dictionary."""
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }


# Global default thresholds instance
default_thresholds = ScoringThresholds()
