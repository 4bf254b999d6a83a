# =============================================================================
# core/session.py  -  Session State (the active project)
# =============================================================================
#
# The only mutable state in the server: which project tool calls target when
# they don't name one.  It lives for the lifetime of the process and is never
# written to disk.
#
# Session.set() does NOT check permissions.  The dispatcher runs the
# permission gate first and only then calls set(), so an unreachable project
# never becomes active.
# =============================================================================

import threading
from typing import Optional


class Session:
    def __init__(self, active_project_id: Optional[str] = None):
        self._lock = threading.Lock()
        self._active_project_id = active_project_id or None

    def get(self) -> Optional[str]:
        with self._lock:
            return self._active_project_id

    def set(self, project_id: str) -> None:
        if not project_id:
            raise ValueError("project_id must be a non-empty string")
        with self._lock:
            self._active_project_id = project_id
