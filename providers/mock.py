# =============================================================================
# providers/mock.py  -  Deterministic demo providers (USE_MOCK_GCP=true)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Implements every capability protocol with fake but *stable* data, so the
#   server and the agent can be exercised offline, without credentials.
#
#   Values are derived from the input names (e.g. the length of the service
#   name), so the same call always returns the same answer and demo runs
#   are reproducible.
#
# DEMO PROJECTS:
#   Only the projects in MOCK_PROJECTS "exist".  Permission checks against any
#   other project fail the way testIamPermissions does for an unknown
#   project, which lets set_active_project's gate be demoed.
# =============================================================================

import random
from typing import Optional

from core.cost import build_cost_breakdown
from core.errors import ProviderError
from core.models import (
    BillingStatus,
    CIStatus,
    CostBreakdown,
    DeploymentResult,
    DiscoveredResource,
    HealthMetrics,
    Identity,
    LogEntry,
    ProjectSummary,
    QuotaUsage,
    Recommendation,
    ResourceOperation,
    SecurityFinding,
)
from core.providers import Providers

MOCK_PROJECTS: dict[str, str] = {
    "demo-proj": "Demo Project",
    "demo-staging": "Demo Staging",
    "demo-analytics": "Demo Analytics",
}

# demo-analytics is readable but the identity only holds monitoring there.
_MOCK_GRANTS: dict[str, set[str]] = {
    "demo-analytics": {"monitoring.timeSeries.list", "resourcemanager.projects.get"},
}

_CI_STATUSES = ("SUCCESS", "FAILURE", "WORKING", "QUEUED")


def _rng(*parts: str) -> random.Random:
    # Seeding with a string is stable across processes.
    return random.Random("/".join(parts))


def _require_project(project: str) -> None:
    if project not in MOCK_PROJECTS:
        raise ProviderError(
            f"GCP Resource Manager Error: 403 Permission denied on resource "
            f"project {project} (or it may not exist)."
        )


class MockIdentityProvider:
    def __init__(self, default_project: Optional[str] = None):
        self._default_project = default_project or ""

    async def get_identity(self) -> Identity:
        return Identity(
            email_or_label="demo-operator@example.com",
            project_id=self._default_project,
            auth_method="MockCredentials",
        )

    async def list_projects(self) -> list[ProjectSummary]:
        return [
            ProjectSummary(project_id=pid, display_name=name, state="ACTIVE")
            for pid, name in MOCK_PROJECTS.items()
        ]

    async def test_permissions(self, project_id: str, permissions: list[str]) -> list[str]:
        _require_project(project_id)
        granted = _MOCK_GRANTS.get(project_id)
        if granted is None:
            return list(permissions)
        return [p for p in permissions if p in granted]


class MockHealthProvider:
    async def fetch_metrics(self, service: str, project: str) -> HealthMetrics:
        seed = len(service)
        return HealthMetrics(
            cpu_usage=(seed * 7) % 100,
            error_rate=(seed * 0.5) % 5,
            latency_p95=100 + (seed * 50) % 1000,
            pod_health=90 + seed % 10,
        )


class MockCostProvider:
    async def get_billing_status(self, project: str) -> BillingStatus:
        return BillingStatus(
            billing_enabled=True,
            billing_account_name="billingAccounts/000000-DEMO00-000000",
        )

    async def fetch_cost_data(self, project: str) -> CostBreakdown:
        seed = len(project)
        month_total = 2000 + seed * 150
        top = "Compute Engine" if seed % 2 == 0 else "Cloud Storage"
        other = "Cloud Storage" if top == "Compute Engine" else "Compute Engine"
        service_totals = [
            (top, month_total * 0.6),
            (other, month_total * 0.3),
            ("Cloud Logging", month_total * 0.1),
        ]
        previous_total = month_total * (0.7 + (seed % 5) * 0.1)
        return build_cost_breakdown(project, service_totals, previous_total)


class MockDeploymentProvider:
    async def trigger_deployment(self, service: str, project: str) -> DeploymentResult:
        build_id = "%08x" % _rng(project, service).getrandbits(32)
        return DeploymentResult(build_id=build_id, status="QUEUED", environment="production")

    async def get_ci_status(self, repo: str, project: str) -> CIStatus:
        seed = len(repo)
        commit = "%07x" % _rng(project, repo).getrandbits(28)
        return CIStatus(
            repo=repo,
            last_status=_CI_STATUSES[seed % len(_CI_STATUSES)],
            duration_seconds=120 + (seed * 10) % 300,
            last_commit=commit,
        )


class MockLoggingProvider:
    _SAMPLES = (
        ("ERROR", "cloud_run_revision", "upstream request timeout after 30s"),
        ("WARNING", "cloud_run_revision", "slow response from payments-db (1.8s)"),
        ("INFO", "gce_instance", "health check passed"),
        ("ERROR", "gce_instance", "disk /dev/sdb is 95% full"),
        ("INFO", "cloud_run_revision", "GET /healthz 200"),
    )

    async def fetch_logs(self, project: str, log_filter: str, limit: int) -> list[LogEntry]:
        entries = []
        for i, (severity, resource, message) in enumerate(self._SAMPLES[:limit]):
            entries.append(LogEntry(
                timestamp=f"2025-01-01T00:{i:02d}:00Z",
                severity=severity,
                resource=resource,
                payload=message,
                insert_id=f"mock-{project}-{i}",
            ))
        return entries


class MockResourceProvider:
    async def manage_gce_instance(
        self, project: str, zone: str, instance: str, action: str
    ) -> ResourceOperation:
        return ResourceOperation(
            status="Operation triggered",
            operation_id=f"operation-mock-{instance}-{action}",
            target=f"GCE instance {instance} in {zone}",
        )

    async def restart_run_service(
        self, project: str, location: str, service: str
    ) -> ResourceOperation:
        return ResourceOperation(
            status="Restart triggered (new revision created)",
            operation_id=f"projects/{project}/locations/{location}/operations/mock-{service}",
            target=f"Cloud Run service {service} in {location}",
        )


class MockSecurityProvider:
    async def list_findings(self, project: str, severity: str) -> list[SecurityFinding]:
        if severity not in ("HIGH", "CRITICAL"):
            return []
        return [
            SecurityFinding(
                resource_name=f"//storage.googleapis.com/{project}-public-assets",
                category="PUBLIC_BUCKET_ACL",
                severity=severity,
                event_time="2025-01-01T00:00:00Z",
                explanation="Cloud Storage bucket is readable by allUsers.",
                recommendation="Remove allUsers and allAuthenticatedUsers from the bucket IAM policy.",
            )
        ]


class MockOptimizationProvider:
    async def list_recommendations(
        self, project: str, location: str, recommender_id: str
    ) -> list[Recommendation]:
        if recommender_id.endswith("IdleResourceRecommender") and ".instance." in recommender_id:
            return [
                Recommendation(
                    recommender_id=recommender_id,
                    description="Stop idle VM instance 'batch-worker-2'.",
                    priority="P2",
                    savings=48.5,
                    currency="USD",
                    state="ACTIVE",
                )
            ]
        return []


class MockQuotaProvider:
    async def get_quota_usage(self, project: str) -> list[QuotaUsage]:
        return [
            QuotaUsage(quota_name="compute.googleapis.com/cpus", usage=22, timestamp="2025-01-01T00:00:00Z"),
            QuotaUsage(quota_name="compute.googleapis.com/in_use_addresses", usage=7, timestamp="2025-01-01T00:00:00Z"),
        ]


class MockArchitectureProvider:
    async def discover_resources(self, project: str) -> list[DiscoveredResource]:
        return [
            DiscoveredResource(id="payments-api", type="CloudRun", label="payments-api"),
            DiscoveredResource(id="frontend", type="CloudRun", label="frontend"),
            DiscoveredResource(id="batch-worker-1", type="GCE", label="batch-worker-1"),
        ]


def build_mock_providers(default_project: Optional[str] = None) -> Providers:
    return Providers(
        identity=MockIdentityProvider(default_project),
        health=MockHealthProvider(),
        cost=MockCostProvider(),
        deployment=MockDeploymentProvider(),
        logging=MockLoggingProvider(),
        resources=MockResourceProvider(),
        security=MockSecurityProvider(),
        optimization=MockOptimizationProvider(),
        quotas=MockQuotaProvider(),
        architecture=MockArchitectureProvider(),
    )
