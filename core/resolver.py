# =============================================================================
# core/resolver.py  -  Project Resolver
# =============================================================================
#
# Precedence, highest first:
#   1. The `project` argument of the tool call (if non-empty)
#   2. The session's active project
#   3. Nothing -> MissingProjectError with remediation instructions
#
# An explicit argument overrides the session for that one call only; the
# session is never mutated here.
# =============================================================================

from typing import Optional

from core.errors import MISSING_PROJECT_REMEDIATION, MissingProjectError
from core.session import Session


def resolve_project(explicit: Optional[str], session: Session) -> str:
    """Return the project a tool call should target."""
    if explicit:
        return explicit

    active = session.get()
    if active:
        return active

    raise MissingProjectError(MISSING_PROJECT_REMEDIATION)
