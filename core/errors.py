# =============================================================================
# core/errors.py  -  Error Taxonomy & Provider Error Classification
# =============================================================================
#
# Every failure a tool call can produce belongs to exactly one ErrorKind.
# The dispatcher catches all of them at its boundary and turns them into an
# ordinary response with isError=true, so the agent always gets an answer it
# can act on and the server process never dies because of a tool call.
#
# THE AUTH HEURISTIC:
#   Google client libraries do not expose a single "you are not logged in"
#   error type across every API surface.  What they do expose is a fairly
#   stable set of phrases in the error text.  classify_provider_error() keeps
#   that heuristic in one place, driven by AUTH_ERROR_MARKERS, so new phrases
#   can be added (and unit-tested) without touching dispatch logic.
# =============================================================================

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "ValidationError"
    MISSING_PROJECT = "MissingProjectError"
    AUTHENTICATION = "AuthenticationError"
    PROVIDER = "ProviderError"
    UNKNOWN_TOOL = "UnknownToolError"


class ControlPlaneError(Exception):
    """Base class for every classified failure of a tool call."""

    kind: ErrorKind = ErrorKind.PROVIDER

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ToolValidationError(ControlPlaneError):
    """Arguments do not match the tool's input schema or product rules."""

    kind = ErrorKind.VALIDATION


class MissingProjectError(ControlPlaneError):
    kind = ErrorKind.MISSING_PROJECT


class AuthenticationError(ControlPlaneError):
    kind = ErrorKind.AUTHENTICATION


class ProviderError(ControlPlaneError):
    """A Google Cloud API failed or refused the operation."""

    kind = ErrorKind.PROVIDER


class UnknownToolError(ControlPlaneError):
    kind = ErrorKind.UNKNOWN_TOOL


# Lower-case substrings that mean "the ambient credentials are missing or
# no longer valid".  Matching is case-insensitive.
AUTH_ERROR_MARKERS: tuple[str, ...] = (
    "could not load the default credentials",
    "default credentials were not found",
    "reauthentication is needed",
    "invalid_grant",
    "request had invalid authentication credentials",
    "unauthenticated",
)

AUTH_REMEDIATION = (
    "Authentication failed: Application Default Credentials are missing or "
    "expired. Run `gcloud auth application-default login` (or set "
    "GOOGLE_APPLICATION_CREDENTIALS to a service-account key file) and retry."
)

MISSING_PROJECT_REMEDIATION = (
    "No project specified and no active project is set. Call `list_projects` "
    "to see the projects you can access, then `set_active_project` to choose "
    "one (or pass `project` explicitly)."
)


def classify_provider_error(message: str) -> ErrorKind:
    """Decide whether a provider failure is an auth problem or a plain API error."""
    lowered = (message or "").lower()
    for marker in AUTH_ERROR_MARKERS:
        if marker in lowered:
            return ErrorKind.AUTHENTICATION
    return ErrorKind.PROVIDER
