# =============================================================================
# core/models.py  -  Data Models (the "nouns" of the control plane)
# =============================================================================
#
# These dataclasses define the *shape* of every piece of information that
# flows between the dispatcher and the capability providers.  They carry no
# behavior beyond small serialization helpers.
#
# NAMING:
#   Python attributes are snake_case.  The JSON the agent receives keeps the
#   camelCase keys the tool contracts were published with (projectId,
#   missingPermissions, buildId, ...).  The conversion happens in the
#   dispatcher or in a to_dict() helper, never in the providers.
#
# DESIGN PRINCIPLE - "No Phantom Fields":
#   If a field exists in a model, the agent *will* reason about it.
#   Providers return only what a tool actually reports.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional


# -----------------------------------------------------------------------------
# Protocol envelope
# -----------------------------------------------------------------------------
@dataclass
class ToolRequest:
    """One incoming tool call: a name plus the raw JSON arguments."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResponse:
    """The uniform response envelope returned for every tool call.

    ``text`` is either the JSON serialization of a structured result or a
    plain sentence (safety guards, errors, confirmations).
    """

    text: str
    is_error: bool = False

    @property
    def content(self) -> list[dict[str, str]]:
        return [{"type": "text", "text": self.text}]

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "isError": self.is_error}


# -----------------------------------------------------------------------------
# Identity & permissions
# -----------------------------------------------------------------------------
# Identity is recomputed from the ambient credentials whenever it is needed.
# It is never cached: credentials can change between calls (for example
# after `gcloud auth application-default login`).
# -----------------------------------------------------------------------------
@dataclass
class Identity:
    """Who the server is acting as."""

    email_or_label: str                # Service-account email or a descriptive label
    project_id: str                    # Project bound to the credentials ("" if none)
    auth_method: str                   # Credential class name, e.g. "Credentials"


@dataclass
class PermissionReport:
    """Result of a permission check for one identity against one project."""

    identity: str
    project_id: str
    capabilities: dict[str, bool]
    missing_permissions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "projectId": self.project_id,
            "capabilities": dict(self.capabilities),
            "missingPermissions": list(self.missing_permissions),
        }


@dataclass
class ProjectSummary:
    """One project visible to the authenticated identity."""

    project_id: str
    display_name: str
    state: str


# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------
@dataclass
class HealthMetrics:
    """Raw service metrics used by the health score."""

    cpu_usage: float                   # Percent, 0-100
    error_rate: float                  # Percent of requests failing
    latency_p95: float                 # Milliseconds
    pod_health: float                  # Percent of serving instances healthy


# -----------------------------------------------------------------------------
# Cost & billing
# -----------------------------------------------------------------------------
@dataclass
class BillingStatus:
    billing_enabled: bool
    billing_account_name: str


@dataclass
class CostBreakdown:
    """Last-30-days spend for one project, compared with the 30 days before."""

    project: str
    month_total: int                   # Rounded USD
    top_cost_service: str              # e.g. "Compute Engine"
    percentage_change: str             # e.g. "+12.5%"
    anomaly_detected: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": self.project,
            "monthTotal": self.month_total,
            "topCostService": self.top_cost_service,
            "percentageChange": self.percentage_change,
            "anomalyDetected": self.anomaly_detected,
        }


# -----------------------------------------------------------------------------
# Deployments & CI
# -----------------------------------------------------------------------------
@dataclass
class DeploymentResult:
    build_id: str
    status: str                        # e.g. "QUEUED", "WORKING"
    environment: str                   # e.g. "production"


@dataclass
class CIStatus:
    repo: str
    last_status: str                   # SUCCESS / FAILURE / WORKING / QUEUED / UNKNOWN
    duration_seconds: int
    last_commit: str


# -----------------------------------------------------------------------------
# Logs
# -----------------------------------------------------------------------------
@dataclass
class LogEntry:
    timestamp: Optional[str]
    severity: Optional[str]
    resource: Optional[str]            # Monitored resource type, e.g. "cloud_run_revision"
    payload: Any
    insert_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "severity": self.severity,
            "resource": self.resource,
            "payload": self.payload,
            "insertId": self.insert_id,
        }


# -----------------------------------------------------------------------------
# Resource lifecycle
# -----------------------------------------------------------------------------
@dataclass
class ResourceOperation:
    status: str                        # Human-readable, e.g. "Operation triggered"
    operation_id: str
    target: str                        # e.g. "GCE instance web-1 in us-central1-a"


# -----------------------------------------------------------------------------
# Security, optimization, quotas
# -----------------------------------------------------------------------------
@dataclass
class SecurityFinding:
    resource_name: Optional[str]
    category: Optional[str]
    severity: Optional[str]
    event_time: Optional[str]
    explanation: Optional[str]
    recommendation: Optional[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "resourceName": self.resource_name,
            "category": self.category,
            "severity": self.severity,
            "eventTime": self.event_time,
            "explanation": self.explanation,
            "recommendation": self.recommendation,
        }


@dataclass
class Recommendation:
    recommender_id: str
    description: str
    priority: Optional[str]
    savings: float                     # Projected monthly savings (positive = saves money)
    currency: Optional[str]
    state: Optional[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommenderId": self.recommender_id,
            "description": self.description,
            "priority": self.priority,
            "savings": self.savings,
            "currency": self.currency,
            "state": self.state,
        }


@dataclass
class QuotaUsage:
    quota_name: str
    usage: Optional[float]
    timestamp: Optional[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "quotaName": self.quota_name,
            "usage": self.usage,
            "timestamp": self.timestamp,
        }


# -----------------------------------------------------------------------------
# Architecture discovery
# -----------------------------------------------------------------------------
@dataclass
class DiscoveredResource:
    """A resource found while mapping a project's architecture."""

    id: str
    type: str                          # "CloudRun" or "GCE"
    label: str
