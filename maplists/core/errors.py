"""Error taxonomy for the list extraction pipeline."""

from __future__ import annotations

_PARSE_FAILED = "Failed to parse the Google Maps list. Please check the link and try again."
_NO_LOCATIONS = "No locations found in this list. It may be empty or private."


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


class ListParseError(RuntimeError):
    """Base class for terminal failures of a single parse call.

    ``code`` is a stable diagnostic tag, ``user_message`` is what callers show.
    """

    code = "parse_failed"
    user_message = _PARSE_FAILED


class InvalidInputError(ListParseError):
    code = "invalid_input"
    user_message = "Invalid URL. Please provide a Google Maps list URL."


class ResolutionFailedError(ListParseError):
    code = "resolution_failed"
    user_message = "Failed to resolve URL. Please check the link and try again."


class FetchFailedError(ListParseError):
    code = "fetch_failed"
    user_message = "Failed to fetch the Google Maps list. It may be private or unavailable."


class NoLocationDataFoundError(ListParseError):
    code = "no_location_data"
    user_message = _NO_LOCATIONS


class NoDataArrayFoundError(ListParseError):
    code = "no_data_array"
    user_message = _NO_LOCATIONS


class MalformedDataError(ListParseError):
    code = "malformed_data"
    user_message = _NO_LOCATIONS
