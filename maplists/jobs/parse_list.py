"""Parse a public Google Maps list into location records."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from maplists.core.config import get_settings
from maplists.core.errors import InvalidInputError, ListParseError
from maplists.etl.extract import extract_locations
from maplists.models import ParseListResult
from maplists.vendors import google_maps

logger = logging.getLogger(__name__)

EMPTY_URL_MESSAGE = "Please provide a Google Maps list URL"


def parse_list(url: Optional[str]) -> ParseListResult:
    """Resolve, fetch and extract a list; pipeline failures come back as a failed result."""
    if not url or not url.strip():
        return ParseListResult(success=False, error=EMPTY_URL_MESSAGE, error_code=InvalidInputError.code)

    url = url.strip()
    timeout = get_settings().request_timeout

    try:
        resolved = google_maps.resolve_list_url(url, timeout=timeout)
        html = google_maps.fetch_list_page(resolved, timeout=timeout)
        locations, stats, list_name = extract_locations(html)
    except ListParseError as exc:
        logger.warning("List parse failed for %s [%s]: %s", url, exc.code, exc)
        return ParseListResult(success=False, error=exc.user_message, error_code=exc.code)

    logger.info("Parsed %d locations from list %r", len(locations), list_name)
    return ParseListResult(success=True, locations=locations, list_name=list_name, stats=stats)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract locations from a Google Maps list")
    parser.add_argument("url", help="Share link or full URL of a public Google Maps list")
    parser.add_argument("--json", dest="as_json", action="store_true", help="Print the full result as JSON")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    result = parse_list(args.url)
    if args.as_json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    elif result.success:
        if result.list_name:
            print(result.list_name)
        for location in result.locations:
            print(f"{location.name}\t{location.latitude},{location.longitude}\t{location.source_url}")
    else:
        print(result.error, file=sys.stderr)
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
