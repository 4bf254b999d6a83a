# =============================================================================
# providers/gcp.py  -  Live Google Cloud providers
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Implements every capability protocol against the real Google Cloud APIs
#   using the official google-cloud-* client libraries and Application
#   Default Credentials (ADC).
#
# HOW CALLS ARE MADE:
#   The client libraries are synchronous, so every API call runs in a worker
#   thread via asyncio.to_thread() to keep the MCP event loop responsive.
#
#   Clients are created lazily, on first use and inside that worker thread.
#   Constructing a client resolves credentials; doing that at import time
#   would crash the server on a machine without ADC instead of returning a
#   helpful error from the first tool call.
#
# ERRORS:
#   google.api_core / google.auth exceptions are re-raised as ProviderError
#   with an "<API> Error: ..." prefix.  The dispatcher classifies the text
#   (credential problems become AuthenticationError with remediation steps).
# =============================================================================

import asyncio
import itertools
import logging
import time
from datetime import datetime, timezone
from functools import cached_property
from typing import Any, Callable, Optional, TypeVar

import google.auth
from google.api_core.exceptions import GoogleAPICallError, PermissionDenied
from google.auth.exceptions import GoogleAuthError
from google.cloud import (
    bigquery,
    billing_v1,
    compute_v1,
    monitoring_v3,
    recommender_v1,
    resourcemanager_v3,
    run_v2,
    securitycenter,
)
from google.cloud import logging as cloud_logging
from google.cloud.devtools import cloudbuild_v1

from core.config import GCPConfig
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

logger = logging.getLogger(__name__)

T = TypeVar("T")

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

RESTART_ANNOTATION = "gcp-control-plane/restart-at"

SCC_SETUP_URL = "https://console.cloud.google.com/security/vulnerability-reports/findings"

HEALTH_WINDOW_SECONDS = 600
MAX_FINDINGS = 10
MAX_QUOTAS = 10


async def _call(api: str, fn: Callable[[], T]) -> T:
    """Run a blocking client call in a worker thread, normalizing its errors."""
    try:
        return await asyncio.to_thread(fn)
    except GoogleAPICallError as exc:
        raise ProviderError(f"{api} Error: {exc}") from exc
    except GoogleAuthError as exc:
        raise ProviderError(f"{api} Error: {exc}") from exc


def _iso(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


# =============================================================================
# Identity (google.auth + Resource Manager)
# =============================================================================

class GCPIdentityProvider:
    @cached_property
    def _projects(self) -> resourcemanager_v3.ProjectsClient:
        return resourcemanager_v3.ProjectsClient()

    async def get_identity(self) -> Identity:
        def _load() -> Identity:
            credentials, project = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
            project = project or ""
            email = getattr(credentials, "service_account_email", None)
            if not email or email == "default":
                email = f"User Credential ({project or 'no default project'})"
            return Identity(
                email_or_label=email,
                project_id=project,
                auth_method=type(credentials).__name__,
            )

        return await _call("Google Auth", _load)

    async def list_projects(self) -> list[ProjectSummary]:
        def _search() -> list[ProjectSummary]:
            return [
                ProjectSummary(
                    project_id=p.project_id,
                    display_name=p.display_name,
                    state=p.state.name,
                )
                for p in self._projects.search_projects(request={})
            ]

        return await _call("GCP Resource Manager", _search)

    async def test_permissions(self, project_id: str, permissions: list[str]) -> list[str]:
        def _test() -> list[str]:
            response = self._projects.test_iam_permissions(
                request={"resource": f"projects/{project_id}", "permissions": list(permissions)}
            )
            return list(response.permissions)

        return await _call("GCP Resource Manager", _test)


# =============================================================================
# Health (Cloud Monitoring, Cloud Run metrics)
# =============================================================================

class GCPHealthProvider:
    @cached_property
    def _client(self) -> monitoring_v3.MetricServiceClient:
        return monitoring_v3.MetricServiceClient()

    def _series(
        self,
        project: str,
        service: str,
        metric: str,
        aligner: monitoring_v3.Aggregation.Aligner,
        reducer: monitoring_v3.Aggregation.Reducer,
        group_by: Optional[list[str]] = None,
    ):
        now = int(time.time())
        interval = monitoring_v3.TimeInterval(
            {"end_time": {"seconds": now}, "start_time": {"seconds": now - HEALTH_WINDOW_SECONDS}}
        )
        aggregation = monitoring_v3.Aggregation(
            {
                "alignment_period": {"seconds": HEALTH_WINDOW_SECONDS},
                "per_series_aligner": aligner,
                "cross_series_reducer": reducer,
                "group_by_fields": group_by or [],
            }
        )
        return self._client.list_time_series(
            request={
                "name": f"projects/{project}",
                "filter": (
                    f'metric.type = "{metric}" AND resource.type = "cloud_run_revision" '
                    f'AND resource.labels.service_name = "{service}"'
                ),
                "interval": interval,
                "view": monitoring_v3.ListTimeSeriesRequest.TimeSeriesView.FULL,
                "aggregation": aggregation,
            }
        )

    @staticmethod
    def _latest(series) -> float:
        for ts in series:
            for point in ts.points:
                value = point.value
                return value.double_value or float(value.int64_value)
        return 0.0

    async def fetch_metrics(self, service: str, project: str) -> HealthMetrics:
        Aligner = monitoring_v3.Aggregation.Aligner
        Reducer = monitoring_v3.Aggregation.Reducer

        def _fetch() -> HealthMetrics:
            cpu = self._latest(self._series(
                project, service, "run.googleapis.com/container/cpu/utilizations",
                Aligner.ALIGN_PERCENTILE_50, Reducer.REDUCE_MEAN,
            ))
            latency = self._latest(self._series(
                project, service, "run.googleapis.com/request_latencies",
                Aligner.ALIGN_PERCENTILE_95, Reducer.REDUCE_MEAN,
            ))

            requests: dict[str, float] = {}
            for ts in self._series(
                project, service, "run.googleapis.com/request_count",
                Aligner.ALIGN_DELTA, Reducer.REDUCE_SUM, ["metric.labels.response_code_class"],
            ):
                code_class = ts.metric.labels.get("response_code_class", "")
                requests[code_class] = sum(float(p.value.int64_value) for p in ts.points)
            total = sum(requests.values())
            error_rate = requests.get("5xx", 0.0) / total * 100 if total else 0.0

            probes: dict[str, float] = {}
            for ts in self._series(
                project, service, "run.googleapis.com/container/completed_probe_attempt_count",
                Aligner.ALIGN_DELTA, Reducer.REDUCE_SUM, ["metric.labels.is_healthy"],
            ):
                healthy = ts.metric.labels.get("is_healthy", "true")
                probes[healthy] = sum(float(p.value.int64_value) for p in ts.points)
            attempts = sum(probes.values())
            pod_health = probes.get("true", 0.0) / attempts * 100 if attempts else 100.0

            return HealthMetrics(
                cpu_usage=round(cpu * 100, 2),
                error_rate=round(error_rate, 2),
                latency_p95=round(latency, 2),
                pod_health=round(pod_health, 2),
            )

        return await _call("Cloud Monitoring", _fetch)


# =============================================================================
# Cost (Cloud Billing + BigQuery billing export)
# =============================================================================

_COST_QUERY = """
SELECT
  service.description AS service_description,
  SUM(IF(usage_start_time >= TIMESTAMP_SUB(CURRENT_TIMESTAMP(), INTERVAL 30 DAY), cost, 0)) AS current_cost,
  SUM(IF(usage_start_time < TIMESTAMP_SUB(CURRENT_TIMESTAMP(), INTERVAL 30 DAY), cost, 0)) AS previous_cost
FROM `{table}`
WHERE project.id = @project_id
  AND usage_start_time >= TIMESTAMP_SUB(CURRENT_TIMESTAMP(), INTERVAL 60 DAY)
GROUP BY service_description
ORDER BY current_cost DESC
"""


class GCPCostProvider:
    def __init__(self, config: GCPConfig):
        self._config = config

    @cached_property
    def _billing(self) -> billing_v1.CloudBillingClient:
        return billing_v1.CloudBillingClient()

    def _table_path(self, project: str) -> str:
        billing_project = self._config.billing_project_id or project
        return f"{billing_project}.{self._config.billing_dataset}.{self._config.billing_table}"

    async def get_billing_status(self, project: str) -> BillingStatus:
        def _get() -> BillingStatus:
            info = self._billing.get_project_billing_info(name=f"projects/{project}")
            return BillingStatus(
                billing_enabled=info.billing_enabled,
                billing_account_name=info.billing_account_name,
            )

        return await _call("Cloud Billing", _get)

    async def fetch_cost_data(self, project: str) -> CostBreakdown:
        def _query() -> CostBreakdown:
            client = bigquery.Client(project=self._config.billing_project_id or project)
            job_config = bigquery.QueryJobConfig(
                query_parameters=[bigquery.ScalarQueryParameter("project_id", "STRING", project)]
            )
            sql = _COST_QUERY.format(table=self._table_path(project))
            rows = list(client.query(sql, job_config=job_config).result())

            service_totals = [
                (row["service_description"], float(row["current_cost"] or 0))
                for row in rows
                if (row["current_cost"] or 0) > 0
            ]
            previous_total = sum(float(row["previous_cost"] or 0) for row in rows)
            return build_cost_breakdown(project, service_totals, previous_total)

        return await _call("BigQuery", _query)


# =============================================================================
# Deployment & CI (Cloud Build)
# =============================================================================

class GCPDeploymentProvider:
    @cached_property
    def _client(self) -> cloudbuild_v1.CloudBuildClient:
        return cloudbuild_v1.CloudBuildClient()

    async def trigger_deployment(self, service: str, project: str) -> DeploymentResult:
        def _run() -> DeploymentResult:
            trigger = next(
                (t for t in self._client.list_build_triggers(project_id=project) if t.name == service),
                None,
            )
            if trigger is None:
                raise ProviderError(
                    f"Cloud Build Error: no build trigger named '{service}' in project {project}."
                )
            operation = self._client.run_build_trigger(project_id=project, trigger_id=trigger.id)
            build = operation.metadata.build
            return DeploymentResult(
                build_id=build.id,
                status=build.status.name,
                environment="production",
            )

        return await _call("Cloud Build", _run)

    async def get_ci_status(self, repo: str, project: str) -> CIStatus:
        def _latest() -> CIStatus:
            builds = self._client.list_builds(
                request={
                    "project_id": project,
                    "filter": f'substitutions.REPO_NAME="{repo}"',
                    "page_size": 1,
                }
            )
            build = next(iter(builds), None)
            if build is None:
                return CIStatus(repo=repo, last_status="UNKNOWN", duration_seconds=0, last_commit="none")

            duration = 0
            if build.start_time and build.finish_time:
                duration = int((build.finish_time - build.start_time).total_seconds())
            commit = (
                build.substitutions.get("SHORT_SHA")
                or build.substitutions.get("COMMIT_SHA", "")[:7]
                or "unknown"
            )
            return CIStatus(
                repo=repo,
                last_status=build.status.name,
                duration_seconds=duration,
                last_commit=commit,
            )

        return await _call("Cloud Build", _latest)


# =============================================================================
# Logs (Cloud Logging)
# =============================================================================

class GCPLoggingProvider:
    def __init__(self):
        self._clients: dict[str, cloud_logging.Client] = {}

    def _client(self, project: str) -> cloud_logging.Client:
        if project not in self._clients:
            self._clients[project] = cloud_logging.Client(project=project)
        return self._clients[project]

    async def fetch_logs(self, project: str, log_filter: str, limit: int) -> list[LogEntry]:
        def _list() -> list[LogEntry]:
            entries = self._client(project).list_entries(
                resource_names=[f"projects/{project}"],
                filter_=log_filter or None,
                order_by=cloud_logging.DESCENDING,
                max_results=limit,
            )
            return [
                LogEntry(
                    timestamp=_iso(entry.timestamp),
                    severity=entry.severity or "DEFAULT",
                    resource=entry.resource.type if entry.resource else "",
                    payload=entry.payload,
                    insert_id=entry.insert_id or "",
                )
                for entry in entries
            ]

        return await _call("Cloud Logging", _list)


# =============================================================================
# Resource management (Compute Engine + Cloud Run)
# =============================================================================

class GCPResourceProvider:
    @cached_property
    def _instances(self) -> compute_v1.InstancesClient:
        return compute_v1.InstancesClient()

    @cached_property
    def _services(self) -> run_v2.ServicesClient:
        return run_v2.ServicesClient()

    async def manage_gce_instance(
        self, project: str, zone: str, instance: str, action: str
    ) -> ResourceOperation:
        def _run() -> ResourceOperation:
            method = self._instances.start if action == "start" else self._instances.stop
            operation = method(project=project, zone=zone, instance=instance)
            return ResourceOperation(
                status="Operation triggered",
                operation_id=operation.name,
                target=f"GCE instance {instance} in {zone}",
            )

        return await _call("Compute Engine", _run)

    async def restart_run_service(
        self, project: str, location: str, service: str
    ) -> ResourceOperation:
        # Cloud Run has no restart verb: touching a template annotation
        # rolls out a new revision, which replaces every instance.
        def _restart() -> ResourceOperation:
            name = f"projects/{project}/locations/{location}/services/{service}"
            current = self._services.get_service(name=name)
            current.template.annotations[RESTART_ANNOTATION] = datetime.now(timezone.utc).isoformat()
            operation = self._services.update_service(service=current)
            return ResourceOperation(
                status="Restart triggered (new revision created)",
                operation_id=operation.operation.name,
                target=f"Cloud Run service {service} in {location}",
            )

        return await _call("Cloud Run", _restart)


# =============================================================================
# Security (Security Command Center)
# =============================================================================

class GCPSecurityProvider:
    @cached_property
    def _client(self) -> securitycenter.SecurityCenterClient:
        return securitycenter.SecurityCenterClient()

    async def list_findings(self, project: str, severity: str) -> list[SecurityFinding]:
        def _list() -> list[SecurityFinding]:
            results = self._client.list_findings(
                request={
                    "parent": f"projects/{project}/sources/-",
                    "filter": f'state="ACTIVE" AND severity="{severity}"',
                    "page_size": MAX_FINDINGS,
                }
            )
            findings = []
            for result in itertools.islice(results, MAX_FINDINGS):
                finding = result.finding
                findings.append(SecurityFinding(
                    resource_name=finding.resource_name,
                    category=finding.category,
                    severity=finding.severity.name,
                    event_time=_iso(finding.event_time),
                    explanation=finding.description,
                    recommendation=finding.next_steps,
                ))
            return findings

        try:
            return await asyncio.to_thread(_list)
        except GoogleAPICallError as exc:
            if isinstance(exc, PermissionDenied) or "not enabled" in str(exc).lower():
                raise ProviderError(
                    "Security Command Center Error: SCC is not enabled for this project "
                    "or the identity lacks securitycenter.findings.list. "
                    f"Enable it at {SCC_SETUP_URL} ({exc})"
                ) from exc
            raise ProviderError(f"Security Command Center Error: {exc}") from exc
        except GoogleAuthError as exc:
            raise ProviderError(f"Security Command Center Error: {exc}") from exc


# =============================================================================
# Optimization (Recommender)
# =============================================================================

class GCPOptimizationProvider:
    @cached_property
    def _client(self) -> recommender_v1.RecommenderClient:
        return recommender_v1.RecommenderClient()

    async def list_recommendations(
        self, project: str, location: str, recommender_id: str
    ) -> list[Recommendation]:
        def _list() -> list[Recommendation]:
            parent = f"projects/{project}/locations/{location}/recommenders/{recommender_id}"
            recommendations = []
            for rec in self._client.list_recommendations(parent=parent):
                cost = rec.primary_impact.cost_projection.cost
                # A negative projected cost is a saving.
                amount = cost.units + cost.nanos / 1e9
                recommendations.append(Recommendation(
                    recommender_id=recommender_id,
                    description=rec.description,
                    priority=rec.priority.name,
                    savings=round(-amount, 2),
                    currency=cost.currency_code or "USD",
                    state=rec.state_info.state.name,
                ))
            return recommendations

        return await _call("Recommender", _list)


# =============================================================================
# Quotas (Cloud Monitoring, MQL)
# =============================================================================

_QUOTA_QUERY = (
    "fetch consumer_quota"
    " | metric 'serviceruntime.googleapis.com/quota/allocation/usage'"
    " | group_by [metric.quota_metric], max(val())"
    f" | top {MAX_QUOTAS}"
)


class GCPQuotaProvider:
    @cached_property
    def _client(self) -> monitoring_v3.QueryServiceClient:
        return monitoring_v3.QueryServiceClient()

    async def get_quota_usage(self, project: str) -> list[QuotaUsage]:
        def _query() -> list[QuotaUsage]:
            results = self._client.query_time_series(
                request={"name": f"projects/{project}", "query": _QUOTA_QUERY}
            )
            quotas = []
            for data in itertools.islice(results, MAX_QUOTAS):
                if not data.label_values or not data.point_data:
                    continue
                point = data.point_data[0]
                value = point.values[0] if point.values else None
                usage = (value.double_value or float(value.int64_value)) if value else 0.0
                quotas.append(QuotaUsage(
                    quota_name=data.label_values[0].string_value,
                    usage=usage,
                    timestamp=_iso(point.time_interval.end_time),
                ))
            return quotas

        return await _call("Cloud Monitoring", _query)


# =============================================================================
# Architecture discovery (Cloud Run + Compute Engine)
# =============================================================================

class GCPArchitectureProvider:
    @cached_property
    def _services(self) -> run_v2.ServicesClient:
        return run_v2.ServicesClient()

    @cached_property
    def _instances(self) -> compute_v1.InstancesClient:
        return compute_v1.InstancesClient()

    async def discover_resources(self, project: str) -> list[DiscoveredResource]:
        def _discover() -> list[DiscoveredResource]:
            resources = []
            for service in self._services.list_services(parent=f"projects/{project}/locations/-"):
                short_name = service.name.rsplit("/", 1)[-1]
                resources.append(DiscoveredResource(id=short_name, type="CloudRun", label=short_name))

            for _zone, scoped in self._instances.aggregated_list(project=project):
                for instance in scoped.instances:
                    resources.append(DiscoveredResource(id=instance.name, type="GCE", label=instance.name))
            return resources

        return await _call("Architecture discovery", _discover)


def build_gcp_providers(config: GCPConfig) -> Providers:
    logger.info("Using live Google Cloud providers (Application Default Credentials)")
    return Providers(
        identity=GCPIdentityProvider(),
        health=GCPHealthProvider(),
        cost=GCPCostProvider(config),
        deployment=GCPDeploymentProvider(),
        logging=GCPLoggingProvider(),
        resources=GCPResourceProvider(),
        security=GCPSecurityProvider(),
        optimization=GCPOptimizationProvider(),
        quotas=GCPQuotaProvider(),
        architecture=GCPArchitectureProvider(),
    )
