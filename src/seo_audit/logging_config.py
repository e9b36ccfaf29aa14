"""Logging setup for audit runs."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from seo_audit.constants import HTTP_CLIENT_LOGGERS, LOG_FORMAT


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """Configure the root logger for an audit run.

    Log records go to stderr, so a JSON report on stdout can be piped.

    Args:
        level: Log level name; unknown names fall back to INFO
        log_file: Also append records to this file (parent dirs are created)
        format_string: Override for LOG_FORMAT
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=format_string or LOG_FORMAT,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    # Per-request chatter from the fetch and probe clients
    client_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in HTTP_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)


def get_logger(name: str) -> logging.Logger:
    """Module logger; same as logging.getLogger(name)."""
    return logging.getLogger(name)
