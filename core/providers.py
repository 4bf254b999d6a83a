# =============================================================================
# core/providers.py  -  Capability Provider Interface
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Declares, as typing.Protocol classes, the narrow contract each external
#   back end (Cloud Monitoring, BigQuery billing export, Cloud Build, ...)
#   must satisfy.  The dispatcher only ever talks to these protocols.
#
# TWO IMPLEMENTATIONS SHIP WITH THE PROJECT:
#   - providers/gcp.py   -> real Google Cloud client libraries
#   - providers/mock.py  -> deterministic demo data (USE_MOCK_GCP=true)
#   Tests use their own recording fakes (tests/conftest.py).
#
# CONTRACT:
#   Every method is a coroutine.  On failure it raises ProviderError (or lets
#   the underlying client exception escape; the dispatcher classifies it).
#   Timeouts and retries are the provider's business; the core never retries.
# =============================================================================

from dataclasses import dataclass
from typing import Protocol

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


class IdentityProvider(Protocol):
    async def get_identity(self) -> Identity: ...

    async def list_projects(self) -> list[ProjectSummary]: ...

    async def test_permissions(self, project_id: str, permissions: list[str]) -> list[str]:
        """Return the subset of ``permissions`` the caller holds on the project."""
        ...


class HealthProvider(Protocol):
    async def fetch_metrics(self, service: str, project: str) -> HealthMetrics: ...


class CostProvider(Protocol):
    async def get_billing_status(self, project: str) -> BillingStatus: ...

    async def fetch_cost_data(self, project: str) -> CostBreakdown: ...


class DeploymentProvider(Protocol):
    async def trigger_deployment(self, service: str, project: str) -> DeploymentResult: ...

    async def get_ci_status(self, repo: str, project: str) -> CIStatus: ...


class LoggingProvider(Protocol):
    async def fetch_logs(self, project: str, log_filter: str, limit: int) -> list[LogEntry]: ...


class ResourceProvider(Protocol):
    async def manage_gce_instance(
        self, project: str, zone: str, instance: str, action: str
    ) -> ResourceOperation: ...

    async def restart_run_service(
        self, project: str, location: str, service: str
    ) -> ResourceOperation: ...


class SecurityProvider(Protocol):
    async def list_findings(self, project: str, severity: str) -> list[SecurityFinding]: ...


class OptimizationProvider(Protocol):
    async def list_recommendations(
        self, project: str, location: str, recommender_id: str
    ) -> list[Recommendation]: ...


class QuotaProvider(Protocol):
    async def get_quota_usage(self, project: str) -> list[QuotaUsage]: ...


class ArchitectureProvider(Protocol):
    async def discover_resources(self, project: str) -> list[DiscoveredResource]: ...


@dataclass
class Providers:
    """One implementation of every capability, handed to the dispatcher."""

    identity: IdentityProvider
    health: HealthProvider
    cost: CostProvider
    deployment: DeploymentProvider
    logging: LoggingProvider
    resources: ResourceProvider
    security: SecurityProvider
    optimization: OptimizationProvider
    quotas: QuotaProvider
    architecture: ArchitectureProvider
