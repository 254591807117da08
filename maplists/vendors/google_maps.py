"""Client utilities for public Google Maps list pages."""

import logging
from typing import Optional

import requests

from maplists.core.errors import FetchFailedError, InvalidInputError, ResolutionFailedError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_DEFAULT_TIMEOUT = 10

SHORT_LINK_MARKERS = ("maps.app.goo.gl", "goo.gl/maps")
CANONICAL_MAP_MARKERS = ("google.com/maps",)

CID_URL_TEMPLATE = "https://maps.google.com/?cid={identifier}"
SEARCH_URL_TEMPLATE = "https://www.google.com/maps/search/?api=1&query={latitude},{longitude}"

# The list page serves stripped-down markup to clients it does not recognise.
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def is_canonical_list_url(url: str) -> bool:
    return any(marker in url for marker in CANONICAL_MAP_MARKERS)


def is_short_list_url(url: str) -> bool:
    return any(marker in url for marker in SHORT_LINK_MARKERS)


def resolve_list_url(url: str, timeout: Optional[float] = None) -> str:
    """Turn a share link into a fetchable list URL.

    Canonical links are returned unchanged; short links are resolved by a
    single redirect-following HEAD request.
    """
    if not is_canonical_list_url(url) and not is_short_list_url(url):
        raise InvalidInputError(f"not a Google Maps list URL: {url}")

    if is_canonical_list_url(url):
        return url

    try:
        response = _SESSION.head(url, allow_redirects=True, timeout=timeout or _DEFAULT_TIMEOUT)
    except requests.RequestException as exc:
        logger.warning("Failed to resolve short link %s: %s", url, exc)
        raise ResolutionFailedError(str(exc)) from exc

    logger.info("Resolved %s -> %s", url, response.url)
    return response.url


def fetch_list_page(url: str, timeout: Optional[float] = None) -> str:
    """Fetch list markup once; there are no retries for this user-triggered call."""
    try:
        response = _SESSION.get(url, headers=BROWSER_HEADERS, timeout=timeout or _DEFAULT_TIMEOUT)
    except requests.RequestException as exc:
        logger.warning("Failed to fetch list page %s: %s", url, exc)
        raise FetchFailedError(str(exc)) from exc

    if not 200 <= response.status_code < 300:
        logger.warning("List page %s returned status %s", url, response.status_code)
        raise FetchFailedError(f"list page returned status {response.status_code}")

    return response.text


def build_cid_url(identifier: str) -> str:
    return CID_URL_TEMPLATE.format(identifier=identifier)


def build_search_url(latitude: float, longitude: float) -> str:
    return SEARCH_URL_TEMPLATE.format(latitude=latitude, longitude=longitude)
