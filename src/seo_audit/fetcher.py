"""HTTP fetch layer used by the page crawl and the sitemap walker."""

import logging
from typing import Optional

import requests

from seo_audit.constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_PAGE_TIMEOUT_SECONDS,
    PAGE_ACCEPT_HEADER,
    STATUS_HOST_UNREACHABLE,
    STATUS_TIMEOUT,
    STATUS_CONNECTION_RESET,
    STATUS_UNKNOWN_ERROR,
)
from seo_audit.models import FetchResponse

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a request fails at the transport level or with a 5xx."""

    def __init__(self, message: str, url: str, status_code: int = STATUS_UNKNOWN_ERROR):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(message)


def _is_connection_reset(exc: BaseException) -> bool:
    """Walk the exception chain looking for a reset connection."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ConnectionResetError):
            return True
        if "reset" in str(current).lower():
            return True
        current = current.__cause__ or current.__context__
    return False


def status_for_exception(exc: BaseException) -> int:
    """Map a request failure to the status code reported for the page.

    Unresolvable hosts and refused connections count as 404, timeouts as
    408 and reset connections as 503. A 5xx response keeps its own status.
    """
    if isinstance(exc, FetchError):
        return exc.status_code
    if isinstance(exc, requests.exceptions.HTTPError) and exc.response is not None:
        return exc.response.status_code
    if isinstance(exc, requests.exceptions.Timeout):
        return STATUS_TIMEOUT
    if isinstance(exc, requests.exceptions.ConnectionError):
        if _is_connection_reset(exc):
            return STATUS_CONNECTION_RESET
        return STATUS_HOST_UNREACHABLE
    return STATUS_UNKNOWN_ERROR


class HttpFetcher:
    """Fetches URLs with a shared requests session."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the fetcher.

        Args:
            user_agent: User agent sent with every request
            max_redirects: Redirects followed when allow_redirects is set
            session: Optional pre-built session (mostly for tests)
        """
        self.user_agent = user_agent
        self.session = session or requests.Session()
        self.session.max_redirects = max_redirects
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": PAGE_ACCEPT_HEADER,
            "Accept-Language": "en-US,en;q=0.9",
        })

    def fetch(
        self,
        url: str,
        timeout: float = DEFAULT_PAGE_TIMEOUT_SECONDS,
        allow_redirects: bool = True,
        method: str = "GET",
        headers: Optional[dict] = None,
    ) -> FetchResponse:
        """Request a URL.

        Any status below 500 is returned as a normal response.

        Args:
            url: URL to request
            timeout: Request timeout in seconds
            allow_redirects: Follow redirects automatically
            method: HTTP method (GET or HEAD)
            headers: Extra request headers

        Returns:
            FetchResponse with final URL, status, body and headers

        Raises:
            FetchError: On transport failures and 5xx responses
        """
        try:
            response = self.session.request(
                method,
                url,
                timeout=timeout,
                allow_redirects=allow_redirects,
                headers=headers,
            )
        except requests.exceptions.RequestException as e:
            status = status_for_exception(e)
            logger.debug(f"Request to {url} failed ({status}): {e}")
            raise FetchError(str(e), url=url, status_code=status) from e

        if response.status_code >= 500:
            raise FetchError(
                f"Server error {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )

        return FetchResponse(
            url=response.url or url,
            status_code=response.status_code,
            body=response.text if method.upper() != "HEAD" else "",
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self.session.close()
