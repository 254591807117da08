"""Core data models shared by the list extraction and import pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(slots=True)
class ParsedLocation:
    """A place recovered from a Google Maps list page.

    Extraction always sets ``identifier`` and ``source_url``. They are optional
    only for locations sent back for import without an identifier, which are
    stored under a coordinate search URL instead.
    """

    name: str
    latitude: float
    longitude: float
    identifier: Optional[str] = None
    source_url: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "ParsedLocation":
        """Build a location from a JSON payload sent back by a client."""
        if not isinstance(payload, dict):
            raise ValueError("location entries must be objects")

        name = str(payload.get("name") or "").strip()
        if not name:
            raise ValueError("location entries require a name")

        latitude = payload.get("latitude")
        longitude = payload.get("longitude")
        if latitude is None or longitude is None:
            raise ValueError(f"{name}: latitude and longitude are required")
        try:
            latitude = float(latitude)
            longitude = float(longitude)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{name}: latitude and longitude must be numeric") from exc

        identifier = payload.get("identifier") or payload.get("cid")
        source_url = payload.get("source_url") or payload.get("googleMapsUrl")
        return cls(
            name=name,
            latitude=latitude,
            longitude=longitude,
            identifier=str(identifier).strip() if identifier else None,
            source_url=str(source_url) if source_url else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ParseStats:
    total: int = 0
    out_of_range: int = 0
    scripts_scanned: int = 0
    marker_count: int = 0


@dataclass(slots=True)
class ParseListResult:
    success: bool
    locations: List[ParsedLocation] = field(default_factory=list)
    list_name: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    stats: Optional[ParseStats] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "locations": [location.to_dict() for location in self.locations],
            "list_name": self.list_name,
            "error": self.error,
            "error_code": self.error_code,
            "stats": asdict(self.stats) if self.stats else None,
        }


@dataclass(slots=True)
class ImportOutcome:
    """Aggregate result of a bulk import call.

    ``success`` only turns false for request-level problems; individual item
    failures are reported through ``failures``.
    """

    success: bool = True
    imported: int = 0
    skipped: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)
    with_identifier: int = 0
    without_identifier: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def errors(self) -> List[str]:
        return [f"{name}: {reason}" for name, reason in self.failures]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": self.errors,
            "tiers": {
                "with_identifier": self.with_identifier,
                "without_identifier": self.without_identifier,
            },
            "error": self.error,
            "error_code": self.error_code,
        }
