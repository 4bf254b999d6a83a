"""Demo providers are deterministic and drive the full dispatcher offline."""

import json

import pytest

from core.config import GCPConfig
from core.dispatcher import ToolDispatcher
from core.errors import ProviderError
from core.models import ToolRequest
from core.session import Session
from providers import build_providers
from providers.mock import MOCK_PROJECTS, build_mock_providers


@pytest.fixture
def mock_dispatcher():
    return ToolDispatcher(Session("demo-proj"), build_mock_providers("demo-proj"))


async def run(dispatcher, name, **arguments):
    return await dispatcher.handle(ToolRequest(name=name, arguments=arguments))


def test_factory_selects_mock_providers():
    providers = build_providers(GCPConfig(use_mock=True, default_project_id="demo-proj"))

    assert type(providers.identity).__name__ == "MockIdentityProvider"


async def test_health_metrics_are_seeded_by_service_name():
    providers = build_mock_providers()

    metrics = await providers.health.fetch_metrics("api", "demo-proj")

    assert (metrics.cpu_usage, metrics.error_rate, metrics.latency_p95, metrics.pod_health) == (21, 1.5, 250, 93)


async def test_health_report_through_dispatcher(mock_dispatcher):
    result = json.loads((await run(mock_dispatcher, "get_service_health", service="api")).text)

    assert result["health_score"] == 71
    assert result["status"] == "DEGRADED"


async def test_cost_anomaly_for_fast_growing_project():
    providers = build_mock_providers()

    breakdown = await providers.cost.fetch_cost_data("demo-costs")

    assert breakdown.month_total == 3500
    assert breakdown.top_cost_service == "Compute Engine"
    assert breakdown.percentage_change == "+42.9%"
    assert breakdown.anomaly_detected is True


async def test_cost_for_demo_project_is_stable(mock_dispatcher):
    result = json.loads((await run(mock_dispatcher, "get_cloud_cost_breakdown")).text)

    assert result["top_service_drilldown"]["monthTotal"] == 3350
    assert result["top_service_drilldown"]["topCostService"] == "Cloud Storage"
    assert result["ai_insight"].startswith("Monthly spend is stable")


async def test_deployments_and_ci_are_repeatable():
    providers = build_mock_providers()

    first = await providers.deployment.trigger_deployment("api", "demo-proj")
    second = await providers.deployment.trigger_deployment("api", "demo-proj")
    ci = await providers.deployment.get_ci_status("web", "demo-proj")

    assert first == second
    assert first.environment == "production"
    assert ci.last_status == "QUEUED"
    assert ci.duration_seconds == 150


async def test_log_limit_is_respected():
    providers = build_mock_providers()

    entries = await providers.logging.fetch_logs("demo-proj", "", 2)

    assert len(entries) == 2


async def test_unknown_project_fails_permission_check():
    providers = build_mock_providers()

    with pytest.raises(ProviderError):
        await providers.identity.test_permissions("not-a-demo-project", ["resourcemanager.projects.get"])


async def test_switching_to_unknown_project_is_refused(mock_dispatcher):
    response = await run(mock_dispatcher, "set_active_project", projectId="not-a-demo-project")

    assert response.is_error
    assert mock_dispatcher.session.get() == "demo-proj"


async def test_switching_to_restricted_project_reports_missing_capabilities(mock_dispatcher):
    response = await run(mock_dispatcher, "set_active_project", projectId="demo-analytics")

    assert not response.is_error
    assert mock_dispatcher.session.get() == "demo-analytics"
    assert "capabilities unavailable on this project: cost, deployment" in response.text


async def test_list_projects(mock_dispatcher):
    result = json.loads((await run(mock_dispatcher, "list_projects")).text)

    assert [p["projectId"] for p in result["projects"]] == list(MOCK_PROJECTS)
    assert result["activeProjectId"] == "demo-proj"


async def test_recommendations_and_diagram(mock_dispatcher):
    recs = json.loads((await run(mock_dispatcher, "get_optimization_recommendations")).text)
    diagram = json.loads((await run(mock_dispatcher, "generate_architecture_diagram")).text)

    assert recs["count"] == 1
    assert recs["total_monthly_savings"] == 48.5
    assert "2 Cloud Run services and 1 GCE instances" in diagram["explanation"]


async def test_security_findings_only_at_high_severity(mock_dispatcher):
    high = json.loads((await run(mock_dispatcher, "audit_security_findings")).text)
    low = json.loads((await run(mock_dispatcher, "audit_security_findings", severity="LOW")).text)

    assert high["count"] == 1
    assert high["findings"][0]["category"] == "PUBLIC_BUCKET_ACL"
    assert low["count"] == 0
