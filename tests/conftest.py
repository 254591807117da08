import json
import sys
from pathlib import Path

import pytest

# Ensure the `maplists` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from maplists.core import config  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def make_entry(name, latitude, longitude, feature_id, identifier, place_id="11c5qfz1w1"):
    """One list entry shaped like the page payload: fields nested a level down, name last."""
    return [
        [None, [None, None, latitude, longitude], [feature_id, identifier], f"/g/{place_id}"],
        name,
        "",
    ]


def embed_payload(payload, title="Coffee in Bangalore - Google Maps"):
    """Render a list page with the payload escaped inside a script string literal."""
    literal = json.dumps(payload, separators=(",", ":"))
    escaped = literal.replace("\\", "\\\\").replace('"', '\\"')
    return (
        "<html><head>"
        f"<title>{title}</title>"
        '<script>var analytics = {"path": "/g/static"};</script>'
        "</head><body>"
        f'<script>window.APP_INITIALIZATION_STATE=[[1,2],"{escaped}"];</script>'
        "<script>console.log('done');</script>"
        "</body></html>"
    )


@pytest.fixture
def list_entries():
    return [
        make_entry("Third Wave Coffee", 12.9716, 77.5946, "3765758969012345678", "1234567890123456789"),
        make_entry("7JVW+9M8 Blue Tokai", 12.9352, 77.6245, "3765758969012345679", "-4611686018427381467"),
        make_entry("Café \"Noir\"", 13.0358, 77.5970, "3765758969012345680", "9876543210987654321"),
    ]


@pytest.fixture
def list_page_html(list_entries):
    # The list viewport comes first and anchors the data array.
    payload = [[None, None, 12.97, 77.59, 13], "My saved places", list_entries]
    return embed_payload(payload)
