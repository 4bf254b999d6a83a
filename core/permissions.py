# =============================================================================
# core/permissions.py  -  Permission Gate
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Answers "can this identity use each feature area of the server on this
#   project?" with ONE batch call to testIamPermissions.
#
# HOW IT WORKS:
#   1. Flatten every capability's required permissions into one ordered,
#      de-duplicated list.
#   2. Ask the identity provider which of them are granted.
#   3. Partition the answer back into per-capability booleans.  A capability
#      is True only if ALL of its permissions are granted.
#
#   "Permission denied" is a normal answer (the permission is simply missing
#   from the granted list).  Only a failure of the check itself (network,
#   auth, unknown project) raises.
#
# USED BY:
#   - test_iam_identity (explicit diagnostic)
#   - set_active_project (precondition before the session is changed)
# =============================================================================

import logging
from typing import Iterable

from core.models import Identity, PermissionReport
from core.providers import IdentityProvider

logger = logging.getLogger(__name__)

# Declaration order matters: missing_permissions follows it.
REQUIRED_PERMISSIONS: dict[str, tuple[str, ...]] = {
    "health": ("monitoring.timeSeries.list",),
    "cost": ("bigquery.jobs.create", "bigquery.tables.list"),
    "deployment": ("cloudbuild.builds.list",),
    "billing": ("resourcemanager.projects.get",),
}

# Reading the project itself; without it the project is unreachable.
PROJECT_ACCESS_PERMISSION = "resourcemanager.projects.get"


def all_required_permissions() -> list[str]:
    """Union of every capability's permissions, in declaration order."""
    seen: list[str] = []
    for permissions in REQUIRED_PERMISSIONS.values():
        for permission in permissions:
            if permission not in seen:
                seen.append(permission)
    return seen


def build_permission_report(
    identity: str, project_id: str, granted: Iterable[str]
) -> PermissionReport:
    """Partition a granted-permission set into the capability map."""
    granted_set = set(granted)
    capabilities = {
        capability: all(p in granted_set for p in permissions)
        for capability, permissions in REQUIRED_PERMISSIONS.items()
    }
    missing = [p for p in all_required_permissions() if p not in granted_set]
    return PermissionReport(
        identity=identity,
        project_id=project_id,
        capabilities=capabilities,
        missing_permissions=missing,
    )


class PermissionGate:
    def __init__(self, identity_provider: IdentityProvider):
        self._identity_provider = identity_provider

    async def verify(self, identity: Identity, project_id: str) -> PermissionReport:
        """Check the identity's permissions on ``project_id``.

        An empty project ID produces an all-False report without calling the
        provider.  Provider failures propagate to the caller.
        """
        if not project_id:
            return build_permission_report(identity.email_or_label, "", [])

        granted = await self._identity_provider.test_permissions(
            project_id, all_required_permissions()
        )
        report = build_permission_report(identity.email_or_label, project_id, granted)
        logger.info(
            "Permission check for %s on %s: %d missing",
            report.identity, project_id, len(report.missing_permissions),
        )
        return report

    async def check_access(self, project_id: str) -> PermissionReport:
        """Fetch the current identity, then verify it against ``project_id``."""
        identity = await self._identity_provider.get_identity()
        return await self.verify(identity, project_id)
