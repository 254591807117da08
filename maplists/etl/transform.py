"""Shape predicates, normalisers and row builders for parsed list entries.

The list payload is undocumented. Everything that encodes an assumption about
its shape lives here, so a format change means editing predicates rather than
the walk in ``maplists.etl.extract``.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from maplists.models import ParsedLocation

logger = logging.getLogger(__name__)

# Marks a place entry (``"/g/<place id>"``) inside the list payload.
PLACE_MARKER = "/g/"

# First coordinate literal in a script; it anchors the scan for the data array.
COORDINATE_ANCHOR_RE = re.compile(r"\[null,null,-?\d+(?:\.\d+)?,-?\d+(?:\.\d+)?[,\]]")

MAX_NAME_LENGTH = 200
UNSIGNED_64_WRAP = 2 ** 64

_IDENTIFIER_RE = re.compile(r"^-?\d{15,25}$")
_NUMERIC_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")
_PLUS_CODE_PREFIX_RE = re.compile(r"^[A-Z0-9]{4}\+[A-Z0-9]+\s+(.+)$", re.IGNORECASE | re.DOTALL)
_BARE_PLUS_CODE_RE = re.compile(r"^[A-Z0-9]{4,8}\+[A-Z0-9]*\s*(?:,.*)?$", re.IGNORECASE | re.DOTALL)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_place_name(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    if not 1 <= len(value) <= MAX_NAME_LENGTH:
        return False
    if value.startswith(PLACE_MARKER) or value.startswith("http"):
        return False
    if _NUMERIC_RE.match(value):
        return False
    if _BARE_PLUS_CODE_RE.match(value):
        return False
    return True


def is_coordinate_literal(node: Any) -> bool:
    """``[null, null, <lat>, <lng>, ...]``"""
    return (
        isinstance(node, list)
        and len(node) >= 4
        and node[0] is None
        and node[1] is None
        and _is_number(node[2])
        and _is_number(node[3])
    )


def is_identifier_pair(node: Any) -> bool:
    """``["<15-25 digits>", "<optionally signed 15-25 digits>"]``"""
    return (
        isinstance(node, list)
        and len(node) == 2
        and all(isinstance(part, str) and _IDENTIFIER_RE.match(part) for part in node)
    )


def coordinates_in_range(latitude: Any, longitude: Any) -> bool:
    if not _is_number(latitude) or not _is_number(longitude):
        return False
    # NaN fails both comparisons.
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def normalize_identifier(raw: str) -> str:
    """Return the canonical unsigned decimal form of a place identifier.

    Negative values are 64-bit two's-complement encodings and are wrapped to
    their unsigned equivalent. Non-negative values are returned untouched.
    """
    value = int(raw)
    if value >= 0:
        return raw
    return str(value + UNSIGNED_64_WRAP)


def decode_unicode_escapes(value: str) -> str:
    return _UNICODE_ESCAPE_RE.sub(lambda match: chr(int(match.group(1), 16)), value)


def clean_place_name(name: str) -> str:
    """Strip leftover escapes and a leading plus code (``"WH8X+Q46 Cafe"`` -> ``"Cafe"``)."""
    decoded = decode_unicode_escapes(name)
    match = _PLUS_CODE_PREFIX_RE.match(decoded)
    if match:
        return match.group(1).strip()
    return decoded.strip()


def to_location_row(
    location: ParsedLocation,
    *,
    collection_id: str,
    creator_id: str,
    source_url: str,
    is_owner: bool,
    city: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "map_id": collection_id,
        "creator_id": creator_id,
        "name": location.name,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "google_maps_url": source_url,
        "note": None,
        "status": "approved" if is_owner else "pending",
        "is_approved": is_owner,
        "city": city,
        "created_at": timestamp,
        "updated_at": timestamp,
    }
