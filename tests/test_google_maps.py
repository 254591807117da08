import pytest
import requests

from maplists.core.errors import FetchFailedError, InvalidInputError, ResolutionFailedError
from maplists.vendors import google_maps


class DummyResponse:
    def __init__(self, status_code=200, text="", url=""):
        self.status_code = status_code
        self.text = text
        self.url = url


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = DummyResponse()
        self.error = None

    def _respond(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def head(self, url, **kwargs):
        return self._respond("HEAD", url, **kwargs)

    def get(self, url, **kwargs):
        return self._respond("GET", url, **kwargs)


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(google_maps, "_SESSION", session)
    return session


def test_resolve_returns_canonical_url_unchanged(patch_session):
    url = "https://www.google.com/maps/@12.97,77.59,12z/data=!4m3!11m2!2sAbCdEf"
    assert google_maps.resolve_list_url(url) == url
    assert patch_session.calls == []


def test_resolve_follows_short_link(patch_session):
    patch_session.response = DummyResponse(url="https://www.google.com/maps/placelists/list/AbCdEf")

    resolved = google_maps.resolve_list_url("https://maps.app.goo.gl/xyz123", timeout=5)

    assert resolved == "https://www.google.com/maps/placelists/list/AbCdEf"
    method, url, kwargs = patch_session.calls[0]
    assert method == "HEAD"
    assert url == "https://maps.app.goo.gl/xyz123"
    assert kwargs["allow_redirects"] is True
    assert kwargs["timeout"] == 5


@pytest.mark.parametrize("url", ["https://example.com/list", "not a url", "https://bing.com/maps"])
def test_resolve_rejects_foreign_urls(patch_session, url):
    with pytest.raises(InvalidInputError):
        google_maps.resolve_list_url(url)
    assert patch_session.calls == []


def test_resolve_network_failure(patch_session):
    patch_session.error = requests.ConnectionError("dns failure")
    with pytest.raises(ResolutionFailedError):
        google_maps.resolve_list_url("https://maps.app.goo.gl/xyz123")


def test_fetch_sends_browser_headers(patch_session):
    patch_session.response = DummyResponse(text="<html></html>")

    html = google_maps.fetch_list_page("https://www.google.com/maps/placelists/list/AbCdEf")

    assert html == "<html></html>"
    method, _, kwargs = patch_session.calls[0]
    assert method == "GET"
    assert "Chrome" in kwargs["headers"]["User-Agent"]
    assert kwargs["headers"]["Accept-Language"].startswith("en-US")
    assert kwargs["timeout"] == 10


def test_fetch_non_2xx_fails_without_retry(patch_session):
    patch_session.response = DummyResponse(status_code=404)
    with pytest.raises(FetchFailedError):
        google_maps.fetch_list_page("https://www.google.com/maps/placelists/list/gone")
    assert len(patch_session.calls) == 1


def test_fetch_network_failure(patch_session):
    patch_session.error = requests.Timeout("slow")
    with pytest.raises(FetchFailedError):
        google_maps.fetch_list_page("https://www.google.com/maps/placelists/list/AbCdEf")


def test_url_builders():
    assert google_maps.build_cid_url("13835058055282170149") == "https://maps.google.com/?cid=13835058055282170149"
    assert google_maps.build_search_url(12.5, 77.25) == "https://www.google.com/maps/search/?api=1&query=12.5,77.25"
