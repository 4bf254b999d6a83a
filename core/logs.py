# =============================================================================
# core/logs.py  -  Cloud Logging filter construction
# =============================================================================
#
# explore_logs accepts friendly parameters (free-text query, minimum
# severity, resource type) and this module turns them into a Cloud Logging
# filter expression, e.g.:
#
#   severity >= "ERROR" AND resource.type = "cloud_run_revision"
#     AND (textPayload:"timeout" OR jsonPayload:"timeout" OR protoPayload:"timeout")
#
# Severity is matched case-insensitively against LOG_SEVERITIES.
# An empty filter means "everything", newest entries first.
# =============================================================================

from typing import Optional

from core.errors import ToolValidationError

DEFAULT_LOG_LIMIT = 50
MAX_LOG_LIMIT = 1000

LOG_SEVERITIES = (
    "DEFAULT",
    "DEBUG",
    "INFO",
    "NOTICE",
    "WARNING",
    "ERROR",
    "CRITICAL",
    "ALERT",
    "EMERGENCY",
)


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_log_filter(
    query: Optional[str] = None,
    severity: Optional[str] = None,
    resource_type: Optional[str] = None,
) -> str:
    parts: list[str] = []

    if severity:
        level = severity.strip().upper()
        if level not in LOG_SEVERITIES:
            raise ToolValidationError(
                f"Invalid arguments for explore_logs: unknown severity {severity!r} "
                f"(expected one of {', '.join(LOG_SEVERITIES)})"
            )
        parts.append(f"severity >= {_quote(level)}")

    if resource_type:
        parts.append(f"resource.type = {_quote(resource_type)}")

    if query:
        q = _quote(query)
        parts.append(f"(textPayload:{q} OR jsonPayload:{q} OR protoPayload:{q})")

    return " AND ".join(parts)
