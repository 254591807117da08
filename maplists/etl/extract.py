"""Recover place records from the markup of a public Google Maps list page.

The page carries its data as an escaped array literal inside one of its
``<script>`` blocks. Extraction runs in stages:

1. pick the script with the most place markers,
2. cut out the array that encloses the first coordinate literal,
3. undo the string escaping and decode the literal,
4. walk the decoded tree collecting name, coordinates and identifier
   signals, emitting a record wherever all of them meet in one subtree.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Set, Tuple

from bs4 import BeautifulSoup

from maplists.core.errors import MalformedDataError, NoDataArrayFoundError, NoLocationDataFoundError
from maplists.etl.transform import (
    COORDINATE_ANCHOR_RE,
    PLACE_MARKER,
    clean_place_name,
    coordinates_in_range,
    is_coordinate_literal,
    is_identifier_pair,
    is_valid_place_name,
    normalize_identifier,
)
from maplists.models import ParsedLocation, ParseStats
from maplists.vendors.google_maps import build_cid_url

logger = logging.getLogger(__name__)

_TITLE_SUFFIX_RE = re.compile(r"\s*-\s*Google Maps\s*$")


def locate_data_script(soup: BeautifulSoup) -> Tuple[str, int]:
    """Return the script text with the most place markers and its marker count.

    Ties go to the earliest script.
    """
    best_text = ""
    best_count = 0
    for script in soup.find_all("script"):
        text = script.string or ""
        count = text.count(PLACE_MARKER)
        if count > best_count:
            best_text, best_count = text, count

    if best_count == 0:
        raise NoLocationDataFoundError("no script block contains place markers")
    return best_text, best_count


def extract_data_array(script_text: str) -> str:
    """Slice out the array literal enclosing the first coordinate literal.

    The payload has no field name to select on, so the slice is found
    structurally: walk backward from the anchor to the first unmatched ``[``,
    then forward from there to its matching ``]``.
    """
    anchor = COORDINATE_ANCHOR_RE.search(script_text)
    if anchor is None:
        raise NoDataArrayFoundError("no coordinate literal in the data script")

    start = None
    depth = 0
    for index in range(anchor.start() - 1, -1, -1):
        char = script_text[index]
        if char == "]":
            depth += 1
        elif char == "[":
            if depth == 0:
                start = index
                break
            depth -= 1
    if start is None:
        raise NoDataArrayFoundError("coordinate literal is not enclosed by an array")

    depth = 0
    for index in range(start, len(script_text)):
        char = script_text[index]
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return script_text[start:index + 1]

    raise NoDataArrayFoundError("enclosing array is never closed")


def _pick_sentinel(text: str) -> str:
    for code in range(1, 32):
        candidate = chr(code)
        if candidate not in text:
            return candidate
    raise MalformedDataError("no free control character to use as an escape sentinel")


def unescape_literal(text: str) -> str:
    """Remove the string-literal escaping layer around the array text.

    Escaped backslashes are parked on a sentinel first so that ``\\\\"`` is
    not read as an escaped quote.
    """
    sentinel = _pick_sentinel(text)
    return text.replace("\\\\", sentinel).replace('\\"', '"').replace(sentinel, "\\")


def _reject_object(pairs: Any) -> Any:
    raise ValueError("objects are not allowed in the list payload")


def parse_literal(text: str) -> List[Any]:
    """Decode a nested array literal of strings, numbers and nulls."""
    try:
        tree = json.loads(text, object_pairs_hook=_reject_object)
    except (ValueError, RecursionError) as exc:
        raise MalformedDataError(f"could not decode data array: {exc}") from exc

    if not isinstance(tree, list):
        raise MalformedDataError("data literal is not an array")
    return tree


@dataclass
class Signals:
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    identifier: Optional[str] = None

    def absorb(self, other: "Signals") -> None:
        """Take the other node's signals for every slot still empty."""
        if self.name is None:
            self.name = other.name
        if self.latitude is None:
            self.latitude = other.latitude
        if self.longitude is None:
            self.longitude = other.longitude
        if self.identifier is None:
            self.identifier = other.identifier

    @property
    def complete(self) -> bool:
        return None not in (self.name, self.latitude, self.longitude, self.identifier)


class SignalWalker:
    """Collect locations from a decoded list tree.

    Entries do not keep their fields at a fixed depth, so every array node
    gathers signals from its children and bubbles them upward; the first
    ancestor holding all four emits the record. State is per instance, use one
    walker per extraction.
    """

    def __init__(self) -> None:
        self.results: List[ParsedLocation] = []
        self.seen: Set[str] = set()
        self.rejected: Set[str] = set()

    def walk(self, node: Any) -> Signals:
        signals = Signals()
        if not isinstance(node, list):
            return signals

        for child in node:
            if isinstance(child, str):
                if signals.name is None and is_valid_place_name(child):
                    signals.name = child
                continue
            if not isinstance(child, list):
                continue

            if is_coordinate_literal(child):
                if signals.latitude is None and signals.longitude is None:
                    signals.latitude = child[2]
                    signals.longitude = child[3]
            elif is_identifier_pair(child):
                if signals.identifier is None:
                    signals.identifier = child[1]

            signals.absorb(self.walk(child))

        if signals.complete:
            self._emit(signals)
        return signals

    def _emit(self, signals: Signals) -> None:
        identifier = normalize_identifier(signals.identifier)
        if identifier in self.seen:
            return
        if not coordinates_in_range(signals.latitude, signals.longitude):
            if identifier not in self.rejected:
                logger.debug(
                    "Dropping %s: coordinates out of range (%s, %s)",
                    identifier,
                    signals.latitude,
                    signals.longitude,
                )
            self.rejected.add(identifier)
            return

        name = clean_place_name(signals.name)
        if not name:
            return

        self.seen.add(identifier)
        self.results.append(
            ParsedLocation(
                name=name,
                latitude=float(signals.latitude),
                longitude=float(signals.longitude),
                identifier=identifier,
                source_url=build_cid_url(identifier),
            )
        )


def extract_list_name(soup: BeautifulSoup) -> Optional[str]:
    if soup.title is None or not soup.title.string:
        return None
    name = _TITLE_SUFFIX_RE.sub("", soup.title.string).strip()
    return name or None


def extract_locations(html: str) -> Tuple[List[ParsedLocation], ParseStats, Optional[str]]:
    """Run every extraction stage over a list page's markup.

    Returns the locations, extraction stats and the list title.
    """
    soup = BeautifulSoup(html, "html.parser")
    scripts_scanned = len(soup.find_all("script"))

    script_text, marker_count = locate_data_script(soup)
    literal = extract_data_array(script_text)
    tree = parse_literal(unescape_literal(literal))

    walker = SignalWalker()
    try:
        walker.walk(tree)
    except RecursionError as exc:
        raise MalformedDataError("data array is nested too deeply") from exc

    stats = ParseStats(
        total=len(walker.results),
        out_of_range=len(walker.rejected),
        scripts_scanned=scripts_scanned,
        marker_count=marker_count,
    )

    if not walker.results:
        # A populated script yielding nothing can mean the page format moved.
        logger.warning(
            "Extracted zero locations despite %d place markers (array length %d); page format may have changed",
            marker_count,
            len(literal),
        )
        raise NoLocationDataFoundError("no complete location entries in data array")

    logger.info(
        "Extracted %d locations (%d out of range) from %d scripts",
        stats.total,
        stats.out_of_range,
        stats.scripts_scanned,
    )
    return walker.results, stats, extract_list_name(soup)
