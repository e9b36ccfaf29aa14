"""Tests for the HTTP fetch layer."""

from unittest.mock import Mock

import pytest
import requests

from seo_audit.fetcher import FetchError, HttpFetcher, status_for_exception


def fake_session(status_code=200, text="<html></html>", url="https://example.com/", headers=None):
    session = Mock()
    session.headers = {}
    response = Mock(status_code=status_code, text=text, url=url, headers=headers or {"Content-Type": "text/html"})
    session.request.return_value = response
    return session


class TestStatusForException:
    """Test suite for mapping request failures to page status codes."""

    def test_timeouts(self):
        assert status_for_exception(requests.exceptions.ReadTimeout("read timed out")) == 408
        assert status_for_exception(requests.exceptions.ConnectTimeout("connect timed out")) == 408

    def test_unreachable_host(self):
        exc = requests.exceptions.ConnectionError("Failed to resolve 'nope.invalid'")
        assert status_for_exception(exc) == 404

    def test_connection_reset(self):
        exc = requests.exceptions.ConnectionError("Connection aborted.")
        exc.__cause__ = ConnectionResetError(104, "Connection reset by peer")
        assert status_for_exception(exc) == 503

    def test_server_error_keeps_status(self):
        response = requests.Response()
        response.status_code = 502
        exc = requests.exceptions.HTTPError("Bad Gateway", response=response)
        assert status_for_exception(exc) == 502

    def test_other_errors(self):
        assert status_for_exception(requests.exceptions.InvalidURL("bad")) == 500
        assert status_for_exception(FetchError("x", url="https://a.com", status_code=408)) == 408


class TestHttpFetcher:
    """Test suite for HttpFetcher."""

    def test_initialization(self):
        fetcher = HttpFetcher(user_agent="AuditBot/2.0", session=fake_session())
        assert fetcher.user_agent == "AuditBot/2.0"
        assert fetcher.session.headers["User-Agent"] == "AuditBot/2.0"

    def test_fetch_ok(self):
        session = fake_session(text="<html>hi</html>", url="https://example.com/final")
        fetcher = HttpFetcher(session=session)

        response = fetcher.fetch("https://example.com/", timeout=5)

        assert response.status_code == 200
        assert response.url == "https://example.com/final"
        assert response.body == "<html>hi</html>"
        assert response.header("content-type") == "text/html"
        session.request.assert_called_once_with(
            "GET", "https://example.com/", timeout=5, allow_redirects=True, headers=None
        )

    def test_client_errors_are_responses(self):
        fetcher = HttpFetcher(session=fake_session(status_code=404, text="not found"))
        assert fetcher.fetch("https://example.com/missing").status_code == 404

    def test_server_error_raises(self):
        fetcher = HttpFetcher(session=fake_session(status_code=503))

        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch("https://example.com/")

        assert exc_info.value.status_code == 503
        assert exc_info.value.url == "https://example.com/"

    def test_transport_error_is_mapped(self):
        session = fake_session()
        session.request.side_effect = requests.exceptions.ConnectTimeout("timed out")
        fetcher = HttpFetcher(session=session)

        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch("https://slow.example.com/")

        assert exc_info.value.status_code == 408

    def test_head_has_no_body(self):
        fetcher = HttpFetcher(session=fake_session(text="ignored"))
        response = fetcher.fetch("https://example.com/", method="HEAD", allow_redirects=False)
        assert response.body == ""

    @pytest.mark.integration
    def test_fetch_live_page(self):
        fetcher = HttpFetcher()
        try:
            response = fetcher.fetch("https://example.com/", timeout=10)
        finally:
            fetcher.close()

        assert response.status_code == 200
        assert "<title>" in response.body
