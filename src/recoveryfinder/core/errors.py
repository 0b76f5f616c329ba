"""Error taxonomy for the resource search pipeline.

Every error carries the message shown to the caller and the HTTP status
it maps to. ``detail`` holds operator-facing context (provider status
codes, timeouts) that is logged but never returned. The API layer
translates all of them in a single exception handler.
"""


class RecoveryFinderError(Exception):
    """Base class for all expected pipeline failures."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(detail or self.message)


class InvalidInput(RecoveryFinderError):
    """Missing or malformed request fields. Raised before any network call."""

    status_code = 400
    default_message = "Invalid request"


class ConfigurationError(RecoveryFinderError):
    """Server-side misconfiguration, e.g. the provider credential is missing."""

    status_code = 500
    default_message = "Geoapify API key not configured"


class LocationNotFound(RecoveryFinderError):
    """The geocoder returned zero matches for the location text."""

    status_code = 400
    default_message = "Could not find that location. Please try again."


class UpstreamError(RecoveryFinderError):
    """A provider call failed."""

    status_code = 500
    default_message = "Location lookup failed. Please try again."


class UpstreamTimeout(UpstreamError):
    """A provider call exceeded its timeout."""


class UpstreamFailure(UpstreamError):
    """A provider call failed at the network or HTTP level."""


class InternalError(RecoveryFinderError):
    """Unexpected exception, reported to the caller without internals."""
