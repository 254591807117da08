"""HTTP entrypoint for list parsing and bulk imports (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from flask import Flask, jsonify, request

from maplists.core.config import get_settings
from maplists.jobs.bulk_import import bulk_import_locations
from maplists.jobs.parse_list import parse_list
from maplists.models import ParsedLocation

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

# Set by the upstream auth gateway once the session is verified.
CALLER_HEADER = "X-User-Id"

_OUTCOME_STATUS = {
    "unauthorized": 401,
    "not_found": 404,
    "lookup_failed": 500,
}

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Liveness only; no DB connection."""
    return jsonify({"status": "ok"}), 200


@app.post("/lists/parse")
def parse_google_maps_list() -> Any:
    """
    Parse a public Google Maps list.
    Required JSON field: url
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    url = payload.get("url")
    if not isinstance(url, str) or not url.strip():
        return jsonify({"error": "missing fields: url"}), 400

    result = parse_list(url)
    if not result.success:
        return jsonify({"error": result.error, "code": result.error_code}), 422

    return jsonify({"data": result.to_dict()}), 200


@app.post("/collections/<collection_id>/import")
def import_locations(collection_id: str) -> Any:
    """
    Import selected parsed locations into a collection.
    Required JSON field: locations (non-empty list of parsed locations)
    """
    caller_id = request.headers.get(CALLER_HEADER, "").strip() or None
    if caller_id is None:
        return jsonify({"error": "You must be logged in to import locations"}), 401

    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    raw_locations = payload.get("locations")
    if not isinstance(raw_locations, list) or not raw_locations:
        return jsonify({"error": "Please select at least one location to import"}), 400

    locations: List[ParsedLocation] = []
    for raw in raw_locations:
        try:
            locations.append(ParsedLocation.from_dict(raw))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

    logger.info("Import request for %s: %d locations from %s", collection_id, len(locations), caller_id)
    outcome = bulk_import_locations(collection_id, caller_id, locations)
    if not outcome.success:
        status = _OUTCOME_STATUS.get(outcome.error_code or "", 500)
        return jsonify({"error": outcome.error, "code": outcome.error_code}), status

    return jsonify({"data": outcome.to_dict()}), 200


def main() -> None:
    """Bind to PORT when the platform injects it, otherwise WORKER_PORT."""
    env_port = os.getenv("PORT")
    logger.info("[BOOT] ENV PORT=%s", env_port)

    port = int(env_port or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)

    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
