"""URL canonicalization for deduplication and comparison."""

import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

UTM_PARAM = re.compile(r'^utm_', re.IGNORECASE)
HTTP_SCHEME = re.compile(r'^https?://', re.IGNORECASE)


class URLNormalizer:
    """
    Normalize URLs so that equivalent addresses compare equal.

    normalize() is total: input that cannot be parsed as a URL is trimmed,
    lowercased and stripped of trailing slashes instead of raising.
    """

    def normalize(self, raw_url: str) -> str:
        """
        Canonicalize a URL for deduplication.

        Drops the fragment and utm_* query parameters, lowercases the host,
        collapses repeated slashes in the path and strips one trailing slash
        (the root path "/" is kept).

        Args:
            raw_url: URL as found in a page or given by the user

        Returns:
            Normalized URL, or '' for empty input
        """
        if not raw_url:
            return ''

        text = str(raw_url).strip()
        try:
            parts = urlsplit(text)
            if not parts.scheme:
                raise ValueError(f"No scheme in {text!r}")
            netloc = self._normalize_netloc(parts)
        except ValueError:
            return self._fallback(text)

        path = re.sub(r'/+', '/', parts.path)
        if netloc and not path:
            path = '/'
        if path != '/' and path.endswith('/'):
            path = path[:-1]

        params = [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if not UTM_PARAM.match(key)
        ]
        query = urlencode(params) if params else ''

        return urlunsplit((parts.scheme, netloc, path, query, ''))

    def normalize_for_comparison(self, raw_url: str) -> Optional[str]:
        """
        Reduce a URL to scheme://host/path?query for equality checks.

        Assumes http:// when no scheme is given and strips every trailing
        slash from the path.

        Returns:
            Comparable URL string, or None for empty input
        """
        if not raw_url:
            return None

        text = str(raw_url).strip()
        candidate = text if HTTP_SCHEME.match(text) else f"http://{text}"
        try:
            parts = urlsplit(candidate)
            host = (parts.hostname or '').lower()
            if parts.port:
                host = f"{host}:{parts.port}"
        except ValueError:
            cleaned = text.rstrip('/')
            return cleaned.lower() if cleaned else None

        path = parts.path.rstrip('/') or '/'
        search = f"?{parts.query}" if parts.query else ''
        return f"{parts.scheme.lower()}://{host}{path}{search}"

    @staticmethod
    def _normalize_netloc(parts) -> str:
        """Rebuild the network location with a lowercase host."""
        if not parts.netloc:
            return ''

        host = (parts.hostname or '').lower()
        if ':' in host:
            host = f"[{host}]"  # IPv6 literal

        netloc = host
        if parts.port is not None:
            netloc = f"{netloc}:{parts.port}"
        if parts.username is not None:
            userinfo = parts.username
            if parts.password is not None:
                userinfo = f"{userinfo}:{parts.password}"
            netloc = f"{userinfo}@{netloc}"
        return netloc

    @staticmethod
    def _fallback(text: str) -> str:
        return text.rstrip('/').lower()


_default_normalizer = URLNormalizer()


def normalize_url(raw_url: str) -> str:
    """Convenience wrapper around URLNormalizer.normalize."""
    return _default_normalizer.normalize(raw_url)


def normalize_for_comparison(raw_url: str) -> Optional[str]:
    """Convenience wrapper around URLNormalizer.normalize_for_comparison."""
    return _default_normalizer.normalize_for_comparison(raw_url)
