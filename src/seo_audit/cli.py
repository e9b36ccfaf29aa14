"""Command-line interface for the SEO audit."""

import argparse
import json
import sys
from dataclasses import replace
from typing import List, Optional
from urllib.parse import urlsplit

from seo_audit.config import AuditConfig, ScoringThresholds, settings
from seo_audit.logging_config import setup_logging, get_logger
from seo_audit.models import AuditReport
from seo_audit.site_auditor import SiteAuditor

logger = get_logger(__name__)


def validate_urls(urls: List[str]) -> Optional[str]:
    """Return an error message for the first unusable URL, or None."""
    if not urls:
        return "At least one URL is required"
    for url in urls:
        try:
            parts = urlsplit(url)
        except ValueError:
            return f"Invalid URL: {url}"
        if parts.scheme not in ("http", "https") or not parts.netloc:
            return f"URL must start with http:// or https://: {url}"
    return None


def build_config(args) -> AuditConfig:
    """Environment defaults overridden by command-line flags."""
    config = AuditConfig.from_env()
    overrides = {"log_level": args.log_level}
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    if args.max_images is not None:
        overrides["max_images_per_page"] = args.max_images
    if args.no_crawl:
        overrides["crawl_urls"] = False
    if args.no_images:
        overrides["include_images"] = False
    if args.no_link_check:
        overrides["check_links"] = False
    if args.no_sitemap:
        overrides["include_sitemap"] = False
    if args.no_certificate:
        overrides["include_certificate"] = False
    return replace(config, **overrides)


def print_report(report: AuditReport) -> None:
    """Print an audit report in a human-readable form."""
    for page in report.pages:
        print(f"\n{'=' * 60}")
        print(f"Page: {page.url} (status {page.status_code})")
        print(f"{'=' * 60}")
        if page.is_error:
            print(f"  Error: {page.error}")
            continue
        score = page.score
        print(f"  Score: {score.score}/100 ({score.grade}, {score.category})")
        if score.notes:
            print(f"  {score.notes}")

    domain = report.domain
    print(f"\n{'=' * 60}")
    print(f"Domain Summary: {domain.domain_name}")
    print(f"{'=' * 60}")
    print(f"  Pages analyzed: {domain.total_pages_analyzed}")
    print(f"  Average SEO score: {domain.average_seo_score}/100 ({domain.overall_grade})")
    print(f"  Pages with H1: {domain.pages_with_h1_percentage}%")
    print(f"  Pages with meta description: {domain.pages_with_meta_description_percentage}%")
    print(f"  Pages with errors: {domain.pages_with_errors}")
    if domain.sitemap is not None:
        sitemap = domain.sitemap
        found = f"{sitemap.sitemap_url} ({sitemap.sitemap_type}, {sitemap.total_urls} URLs)"
        print(f"  Sitemap: {found if sitemap.has_sitemap else 'not found'}")
    if domain.certificate is not None:
        certificate = domain.certificate
        print(f"  SSL certificate: {certificate.status} (valid until {certificate.valid_until or 'Unknown'})")
    print()


def audit_command(args) -> int:
    """Audit one or more URLs of a site."""
    error = validate_urls(args.urls)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        return 2

    config = build_config(args)
    thresholds = ScoringThresholds.from_file(args.thresholds) if args.thresholds else ScoringThresholds.from_env()

    auditor = SiteAuditor(config=config, thresholds=thresholds)
    try:
        report = auditor.audit(args.urls)
    finally:
        auditor.fetcher.close()

    if args.output == "json":
        output = json.dumps(report.to_dict(), indent=2, default=str)
        if args.output_file:
            with open(args.output_file, "w") as f:
                f.write(output)
            logger.info(f"Report written to {args.output_file}")
        else:
            print(output)
    else:
        print_report(report)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SEO Audit - Crawl pages, extract on-page SEO signals and score them"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper(),
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=settings.LOG_FILE,
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    audit_parser = subparsers.add_parser("audit", help="Audit one or more URLs of a site.")
    audit_parser.add_argument("urls", nargs="*", help="URLs to audit; the first defines the domain")
    audit_parser.add_argument(
        "--max-pages",
        type=int,
        help="Maximum pages to analyze (default: 5)",
    )
    audit_parser.add_argument(
        "--no-crawl",
        action="store_true",
        help="Only analyze the given URLs, do not follow internal links",
    )
    audit_parser.add_argument(
        "--no-images",
        action="store_true",
        help="Skip the image inventory",
    )
    audit_parser.add_argument(
        "--max-images",
        type=int,
        help="Maximum images per page (-1 for all, the default)",
    )
    audit_parser.add_argument(
        "--no-link-check",
        action="store_true",
        help="Do not probe links for broken targets",
    )
    audit_parser.add_argument(
        "--no-sitemap",
        action="store_true",
        help="Skip sitemap analysis",
    )
    audit_parser.add_argument(
        "--no-certificate",
        action="store_true",
        help="Skip the TLS certificate check",
    )
    audit_parser.add_argument(
        "--thresholds",
        help="JSON file with scoring thresholds",
    )
    audit_parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    audit_parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file (only for json format)",
    )
    audit_parser.set_defaults(func=audit_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
