"""Pytest fixtures and recording fakes for the control-plane tests."""

import json
import os
from typing import Any, Optional

import pytest
from hypothesis import Phase, Verbosity, settings

from core.dispatcher import ToolDispatcher
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
    ToolRequest,
    ToolResponse,
)
from core.providers import Providers
from core.session import Session

settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile("dev", max_examples=30, deadline=500)
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose, deadline=None)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


class Recorder:
    """Remembers every call as (method, args) and can be told to fail."""

    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []
        self.errors: dict[str, Exception] = {}

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.errors:
            raise self.errors[method]

    def called(self, method: str) -> list[tuple]:
        return [args for name, args in self.calls if name == method]


class FakeIdentityProvider(Recorder):
    def __init__(
        self,
        identity: Optional[Identity] = None,
        projects: Optional[list[ProjectSummary]] = None,
        granted: Optional[set[str]] = None,
    ):
        super().__init__()
        self.identity = identity or Identity(
            email_or_label="ops@example.iam.gserviceaccount.com",
            project_id="",
            auth_method="Credentials",
        )
        self.projects = projects if projects is not None else [
            ProjectSummary(project_id="proj-a", display_name="Project A", state="ACTIVE"),
            ProjectSummary(project_id="proj-b", display_name="Project B", state="ACTIVE"),
        ]
        # None means "everything requested is granted".
        self.granted = granted

    async def get_identity(self) -> Identity:
        self._record("get_identity")
        return self.identity

    async def list_projects(self) -> list[ProjectSummary]:
        self._record("list_projects")
        return list(self.projects)

    async def test_permissions(self, project_id: str, permissions: list[str]) -> list[str]:
        self._record("test_permissions", project_id, tuple(permissions))
        if self.granted is None:
            return list(permissions)
        return [p for p in permissions if p in self.granted]


class FakeBackend(Recorder):
    """One object standing in for every non-identity provider."""

    def __init__(self):
        super().__init__()
        self.metrics = HealthMetrics(cpu_usage=42.0, error_rate=0.2, latency_p95=180.0, pod_health=100.0)
        self.cost = CostBreakdown(
            project="",
            month_total=1200,
            top_cost_service="Compute Engine",
            percentage_change="+5.0%",
        )
        self.log_entries = [
            LogEntry(
                timestamp="2025-01-01T00:00:00Z",
                severity="ERROR",
                resource="cloud_run_revision",
                payload="boom",
                insert_id="abc",
            )
        ]
        self.findings: list[SecurityFinding] = []
        self.recommendations: dict[str, list[Recommendation]] = {}
        self.quotas = [QuotaUsage(quota_name="compute.googleapis.com/cpus", usage=12.0, timestamp="t")]
        self.resources = [DiscoveredResource(id="api", type="CloudRun", label="api")]

    async def fetch_metrics(self, service, project):
        self._record("fetch_metrics", service, project)
        return self.metrics

    async def get_billing_status(self, project):
        self._record("get_billing_status", project)
        return BillingStatus(billing_enabled=True, billing_account_name="billingAccounts/0000")

    async def fetch_cost_data(self, project):
        self._record("fetch_cost_data", project)
        self.cost.project = project
        return self.cost

    async def trigger_deployment(self, service, project):
        self._record("trigger_deployment", service, project)
        return DeploymentResult(build_id="build-1", status="QUEUED", environment="production")

    async def get_ci_status(self, repo, project):
        self._record("get_ci_status", repo, project)
        return CIStatus(repo=repo, last_status="SUCCESS", duration_seconds=95, last_commit="a1b2c3d")

    async def fetch_logs(self, project, log_filter, limit):
        self._record("fetch_logs", project, log_filter, limit)
        return list(self.log_entries)

    async def manage_gce_instance(self, project, zone, instance, action):
        self._record("manage_gce_instance", project, zone, instance, action)
        return ResourceOperation(status="Operation triggered", operation_id="op-1", target=instance)

    async def restart_run_service(self, project, location, service):
        self._record("restart_run_service", project, location, service)
        return ResourceOperation(status="Restart triggered", operation_id="op-2", target=service)

    async def list_findings(self, project, severity):
        self._record("list_findings", project, severity)
        return list(self.findings)

    async def list_recommendations(self, project, location, recommender_id):
        self._record("list_recommendations", project, location, recommender_id)
        return list(self.recommendations.get(recommender_id, []))

    async def get_quota_usage(self, project):
        self._record("get_quota_usage", project)
        return list(self.quotas)

    async def discover_resources(self, project):
        self._record("discover_resources", project)
        return list(self.resources)


def make_providers(identity: FakeIdentityProvider, backend: FakeBackend) -> Providers:
    return Providers(
        identity=identity,
        health=backend,
        cost=backend,
        deployment=backend,
        logging=backend,
        resources=backend,
        security=backend,
        optimization=backend,
        quotas=backend,
        architecture=backend,
    )


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def session() -> Session:
    return Session()


@pytest.fixture
def dispatcher(session, identity_provider, backend) -> ToolDispatcher:
    return ToolDispatcher(session, make_providers(identity_provider, backend))


@pytest.fixture
def call(dispatcher):
    """Invoke a tool by name: ``await call("list_projects")``."""

    async def _call(name: str, **arguments: Any) -> ToolResponse:
        return await dispatcher.handle(ToolRequest(name=name, arguments=arguments))

    return _call


def payload(response: ToolResponse) -> Any:
    assert not response.is_error, response.text
    return json.loads(response.text)
