"""Import a selection of parsed list locations into a collection."""

import argparse
import json
import logging
import sys
import time
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from maplists.core.config import get_settings
from maplists.core.db import get_collection_owner, insert_location, list_collection_locations, register_upvote
from maplists.etl.transform import coordinates_in_range, normalize_identifier, to_location_row
from maplists.jobs.parse_list import parse_list
from maplists.models import ImportOutcome, ParsedLocation
from maplists.vendors.google_maps import build_cid_url, build_search_url

logger = logging.getLogger(__name__)

# Two places closer than this on both axes (about a metre) are the same place.
COORDINATE_TOLERANCE = 0.00001

UNAUTHORIZED_MESSAGE = "You must be logged in to import locations"
NOT_FOUND_MESSAGE = "Map not found"
LOOKUP_FAILED_MESSAGE = "Failed to check existing locations"


def coordinate_key(latitude: float, longitude: float) -> str:
    return f"{latitude:.5f},{longitude:.5f}"


def _existing_coordinates(rows: Iterable[Dict[str, Any]]) -> List[Tuple[float, float]]:
    coords: List[Tuple[float, float]] = []
    for row in rows:
        latitude = row.get("latitude")
        longitude = row.get("longitude")
        if latitude is None or longitude is None:
            continue
        coords.append((float(latitude), float(longitude)))
    return coords


def _is_near_existing(coords: Iterable[Tuple[float, float]], latitude: float, longitude: float) -> bool:
    return any(
        abs(existing_lat - latitude) < COORDINATE_TOLERANCE and abs(existing_lng - longitude) < COORDINATE_TOLERANCE
        for existing_lat, existing_lng in coords
    )


def _request_failure(message: str, code: str) -> ImportOutcome:
    return ImportOutcome(success=False, error=message, error_code=code)


def bulk_import_locations(
    collection_id: str,
    caller_id: Optional[str],
    locations: Iterable[ParsedLocation],
    *,
    delay_seconds: Optional[float] = None,
) -> ImportOutcome:
    """Insert the selected locations one by one, skipping duplicates.

    Each insert commits on its own; an item that fails is recorded in the
    outcome and the batch carries on. Only a missing caller, a missing
    collection or a failed lookup of existing rows fails the whole call.
    """
    if not caller_id:
        return _request_failure(UNAUTHORIZED_MESSAGE, "unauthorized")

    settings = get_settings()
    delay = settings.import_delay_seconds if delay_seconds is None else delay_seconds

    try:
        owner_id = get_collection_owner(collection_id)
    except Exception as exc:  # noqa: BLE001
        logger.error("Failed to load collection %s: %s", collection_id, exc)
        return _request_failure(LOOKUP_FAILED_MESSAGE, "lookup_failed")
    if owner_id is None:
        return _request_failure(NOT_FOUND_MESSAGE, "not_found")

    is_owner = owner_id == str(caller_id)

    try:
        existing_rows = list_collection_locations(collection_id)
    except Exception as exc:  # noqa: BLE001
        logger.error("Failed to list locations of %s: %s", collection_id, exc)
        return _request_failure(LOOKUP_FAILED_MESSAGE, "lookup_failed")

    existing_urls: Set[str] = {row["google_maps_url"] for row in existing_rows if row.get("google_maps_url")}
    existing_coords = _existing_coordinates(existing_rows)
    imported_identifiers: Set[str] = set()
    imported_coords: Set[str] = set()

    selected = list(locations)
    outcome = ImportOutcome()
    logger.info(
        "Importing %d locations into %s (owner=%s, %d existing)",
        len(selected),
        collection_id,
        is_owner,
        len(existing_rows),
    )

    for location in selected:
        name = location.name or "Unnamed location"
        try:
            latitude, longitude = location.latitude, location.longitude
            if not coordinates_in_range(latitude, longitude):
                outcome.skipped += 1
                outcome.failures.append((name, "Invalid coordinates"))
                continue

            identifier = normalize_identifier(location.identifier) if location.identifier else None
            if identifier:
                if identifier in imported_identifiers or build_cid_url(identifier) in existing_urls:
                    logger.debug("Skipping %s: identifier %s already present", name, identifier)
                    outcome.skipped += 1
                    continue

            key = coordinate_key(latitude, longitude)
            if key in imported_coords or _is_near_existing(existing_coords, latitude, longitude):
                logger.debug("Skipping %s: a location already exists at %s", name, key)
                outcome.skipped += 1
                continue

            source_url = build_cid_url(identifier) if identifier else build_search_url(latitude, longitude)
            row = to_location_row(
                location,
                collection_id=collection_id,
                creator_id=str(caller_id),
                source_url=source_url,
                is_owner=is_owner,
                city=settings.default_city,
            )
            location_id = insert_location(row)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to import %s: %s", name, exc)
            outcome.failures.append((name, str(exc)))
            continue

        try:
            register_upvote(location_id, str(caller_id))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Auto-upvote failed for %s: %s", location_id, exc)

        outcome.imported += 1
        if identifier:
            outcome.with_identifier += 1
            imported_identifiers.add(identifier)
        else:
            outcome.without_identifier += 1
        imported_coords.add(key)
        existing_urls.add(source_url)
        existing_coords.append((float(latitude), float(longitude)))

        if delay > 0:
            time.sleep(delay)

    logger.info(
        "Import into %s finished: imported=%d skipped=%d failed=%d",
        collection_id,
        outcome.imported,
        outcome.skipped,
        len(outcome.failures),
    )
    return outcome


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import every location of a Google Maps list into a map")
    parser.add_argument("url", help="Share link or full URL of a public Google Maps list")
    parser.add_argument("--collection", dest="collection_id", required=True, help="Target map id")
    parser.add_argument("--user", dest="caller_id", required=True, help="Id of the importing user")
    parser.add_argument(
        "--delay",
        dest="delay_seconds",
        type=float,
        default=None,
        help="Seconds to wait between inserts (defaults to IMPORT_DELAY_SECONDS)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    parsed = parse_list(args.url)
    if not parsed.success:
        print(parsed.error, file=sys.stderr)
        return 1

    outcome = bulk_import_locations(
        args.collection_id,
        args.caller_id,
        parsed.locations,
        delay_seconds=args.delay_seconds,
    )
    print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    return 0 if outcome.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
