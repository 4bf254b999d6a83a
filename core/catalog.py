# =============================================================================
# core/catalog.py  -  Tool Catalog
# =============================================================================
#
# The declarative list of every tool the server exposes: name, description
# (the agent reads this to decide WHEN to call a tool) and a JSON Schema for
# the arguments (the dispatcher validates every call against it).
#
# TOOL NAMING CONVENTIONS:
#   - get_* / check_* / list_* / explore_* / audit_* -> read-only
#   - set_active_project                             -> session-only change
#   - trigger_deployment / manage_resource          -> change cloud state;
#     both are guarded in the dispatcher before any provider call
#
# This list must stay 1:1 with the dispatcher's handler table and with the
# FastMCP tools in tools/mcp_server.py (tests/test_catalog.py checks both).
# =============================================================================

import copy
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from core.logs import DEFAULT_LOG_LIMIT, LOG_SEVERITIES, MAX_LOG_LIMIT


@dataclass(frozen=True)
class ToolSchema:
    name: str
    description: str
    input_schema: Mapping[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": copy.deepcopy(dict(self.input_schema)),
        }


_PROJECT = {
    "type": "string",
    "description": "Optional project ID, defaults to the active project",
}


def _schema(properties: Optional[dict[str, Any]] = None, required: tuple[str, ...] = ()) -> Mapping[str, Any]:
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties or {},
        "additionalProperties": False,
    }
    if required:
        schema["required"] = list(required)
    return schema


TOOL_CATALOG: tuple[ToolSchema, ...] = (
    ToolSchema(
        name="list_projects",
        description="List all GCP projects the authenticated identity can access, plus the active project.",
        input_schema=_schema(),
    ),
    ToolSchema(
        name="set_active_project",
        description=(
            "Set the default project for all subsequent GCP tool calls. "
            "The identity's permissions on the project are verified first; "
            "the active project is left unchanged if verification fails."
        ),
        input_schema=_schema(
            {"projectId": {"type": "string", "minLength": 1, "description": "The GCP project ID to set as active"}},
            required=("projectId",),
        ),
    ),
    ToolSchema(
        name="get_service_health",
        description="Fetch real-time metrics and compute a 0-100 health score and status for a GCP service.",
        input_schema=_schema(
            {
                "service": {"type": "string", "minLength": 1, "description": "The name of the GCP service"},
                "project": _PROJECT,
            },
            required=("service",),
        ),
    ),
    ToolSchema(
        name="get_cloud_cost_breakdown",
        description=(
            "Service-level cost breakdown for the last 30 days (BigQuery billing export) "
            "plus the project's billing status (Cloud Billing API), with anomaly detection."
        ),
        input_schema=_schema({"project": _PROJECT}),
    ),
    ToolSchema(
        name="trigger_deployment",
        description=(
            "Trigger a production deployment via Cloud Build. Requires approval=true; "
            "any other value is refused without contacting GCP."
        ),
        input_schema=_schema(
            {
                "service": {"type": "string", "minLength": 1, "description": "The name of the service to deploy"},
                "approval": {"type": "boolean", "description": "Explicit approval flag for production deployments"},
                "project": _PROJECT,
            },
            required=("service", "approval"),
        ),
    ),
    ToolSchema(
        name="get_ci_pipeline_status",
        description="Check the most recent Cloud Build run for a repository (status, duration, commit).",
        input_schema=_schema(
            {
                "repo": {"type": "string", "minLength": 1, "description": "Repository name"},
                "project": _PROJECT,
            },
            required=("repo",),
        ),
    ),
    ToolSchema(
        name="test_iam_identity",
        description="Show the authenticated identity and verify its IAM permissions for each capability.",
        input_schema=_schema({"project": _PROJECT}),
    ),
    ToolSchema(
        name="explore_logs",
        description="Search Cloud Logging entries by free text, minimum severity and resource type.",
        input_schema=_schema(
            {
                "project": _PROJECT,
                "query": {"type": "string", "description": "Text to match in log payloads"},
                "limit": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": MAX_LOG_LIMIT,
                    "default": DEFAULT_LOG_LIMIT,
                    "description": f"Maximum entries to return (default {DEFAULT_LOG_LIMIT})",
                },
                "severity": {
                    "type": "string",
                    "description": "Minimum severity, any case: " + ", ".join(LOG_SEVERITIES),
                },
                "resourceType": {"type": "string", "description": "Monitored resource type, e.g. cloud_run_revision"},
            }
        ),
    ),
    ToolSchema(
        name="manage_resource",
        description=(
            "Start or stop a Compute Engine instance, or restart a Cloud Run service "
            "(by rolling out a new revision)."
        ),
        input_schema=_schema(
            {
                "resourceType": {"type": "string", "enum": ["gce", "run"], "description": "gce or run"},
                "action": {"type": "string", "enum": ["start", "stop", "restart"]},
                "resourceName": {"type": "string", "minLength": 1, "description": "Instance or service name"},
                "location": {"type": "string", "minLength": 1, "description": "Zone (gce) or region (run)"},
                "project": _PROJECT,
            },
            required=("resourceType", "action", "resourceName", "location"),
        ),
    ),
    ToolSchema(
        name="audit_security_findings",
        description="List active Security Command Center findings for a project at a given severity.",
        input_schema=_schema(
            {
                "project": _PROJECT,
                "severity": {
                    "type": "string",
                    "enum": ["LOW", "MEDIUM", "HIGH", "CRITICAL"],
                    "default": "HIGH",
                },
            }
        ),
    ),
    ToolSchema(
        name="get_optimization_recommendations",
        description="Collect cost and performance recommendations (idle VMs, machine types, idle disks, unattended projects).",
        input_schema=_schema(
            {
                "project": _PROJECT,
                "location": {"type": "string", "minLength": 1, "default": "global", "description": "Zone, region or global"},
            }
        ),
    ),
    ToolSchema(
        name="check_quota_status",
        description="Report the most heavily used quotas in a project.",
        input_schema=_schema({"project": _PROJECT}),
    ),
    ToolSchema(
        name="generate_architecture_diagram",
        description="Discover Cloud Run services and GCE instances and render a Mermaid architecture diagram.",
        input_schema=_schema({"project": _PROJECT}),
    ),
)

_BY_NAME: dict[str, ToolSchema] = {tool.name: tool for tool in TOOL_CATALOG}


def get_tool_schema(name: str) -> Optional[ToolSchema]:
    return _BY_NAME.get(name)
