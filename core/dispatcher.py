# =============================================================================
# core/dispatcher.py  -  Tool Dispatcher
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Receives a tool name + raw arguments and produces the uniform response
#   envelope.  It is the only place where the cross-cutting rules live:
#
#   1. The tool must exist in the catalog       -> else UnknownToolError
#   2. Arguments must match the tool's schema   -> else ValidationError
#   3. A target project must be resolvable      -> else MissingProjectError
#   4. The capability provider is called
#   5. The result is serialized to JSON text
#   6. Any failure is classified and returned with isError=true
#
#   Nothing raised while handling a call escapes handle(): the transport
#   layer always receives an ordinary response.
#
# SPECIAL PATHS:
#   - list_projects and set_active_project need no resolved project.
#   - test_iam_identity falls back to the credentials' own project, then to
#     an empty project, instead of failing.
#   - set_active_project runs the permission gate BEFORE touching the
#     session, under a lock, so a failed switch leaves the session unchanged
#     and no other call observes a half-applied switch.
#   - trigger_deployment refuses anything but approval=true before any
#     provider call.
#   - manage_resource only allows gce:start, gce:stop and run:restart.
# =============================================================================

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from core.catalog import TOOL_CATALOG, ToolSchema
from core.cost import generate_insight
from core.diagram import NO_RESOURCES_MESSAGE, build_mermaid_diagram
from core.errors import (
    AUTH_REMEDIATION,
    ControlPlaneError,
    ErrorKind,
    ProviderError,
    ToolValidationError,
    UnknownToolError,
    classify_provider_error,
)
from core.health import build_health_report
from core.logs import DEFAULT_LOG_LIMIT, build_log_filter
from core.models import ToolRequest, ToolResponse
from core.permissions import PROJECT_ACCESS_PERMISSION, PermissionGate
from core.providers import Providers
from core.recommendations import collect_recommendations, total_savings
from core.resolver import resolve_project
from core.session import Session

logger = logging.getLogger(__name__)

DEPLOYMENT_APPROVAL_MESSAGE = "Deployment requires explicit 'approval: true' for safety."

GCE_RESTART_MESSAGE = (
    "GCE instances support only 'start' and 'stop'. To restart an instance, "
    "call manage_resource with action='stop', then again with action='start'."
)

RUN_START_STOP_MESSAGE = (
    "Cloud Run services support only 'restart' (which rolls out a new revision). "
    "Cloud Run scales instances automatically, so 'start' and 'stop' are not available."
)

NO_QUOTA_USAGE_MESSAGE = (
    "No significant quota usage detected or Cloud Quotas monitoring is not "
    "enabled for this project."
)

HandlerResult = Union[dict[str, Any], str]
Handler = Callable[[dict[str, Any]], Awaitable[HandlerResult]]


def _to_text(result: HandlerResult) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


class ToolDispatcher:
    def __init__(
        self,
        session: Session,
        providers: Providers,
        catalog: Iterable[ToolSchema] = TOOL_CATALOG,
    ):
        self.session = session
        self.providers = providers
        self.gate = PermissionGate(providers.identity)

        self._catalog: dict[str, ToolSchema] = {tool.name: tool for tool in catalog}
        self._validators = {
            name: Draft7Validator(dict(tool.input_schema))
            for name, tool in self._catalog.items()
        }
        self._switch_lock = asyncio.Lock()

        self._handlers: dict[str, Handler] = {
            "list_projects": self._list_projects,
            "set_active_project": self._set_active_project,
            "get_service_health": self._get_service_health,
            "get_cloud_cost_breakdown": self._get_cloud_cost_breakdown,
            "trigger_deployment": self._trigger_deployment,
            "get_ci_pipeline_status": self._get_ci_pipeline_status,
            "test_iam_identity": self._test_iam_identity,
            "explore_logs": self._explore_logs,
            "manage_resource": self._manage_resource,
            "audit_security_findings": self._audit_security_findings,
            "get_optimization_recommendations": self._get_optimization_recommendations,
            "check_quota_status": self._check_quota_status,
            "generate_architecture_diagram": self._generate_architecture_diagram,
        }

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------
    @property
    def handler_names(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def list_tools(self) -> list[dict[str, Any]]:
        return [tool.to_dict() for tool in self._catalog.values()]

    # -------------------------------------------------------------------------
    # Invocation
    # -------------------------------------------------------------------------
    async def handle(self, request: ToolRequest) -> ToolResponse:
        try:
            handler = self._handlers.get(request.name)
            if handler is None or request.name not in self._catalog:
                raise UnknownToolError(f"Unknown tool: {request.name}")

            arguments = self._validate(request.name, request.arguments)
            result = await handler(arguments)
        except ControlPlaneError as exc:
            kind = exc.kind
            if kind is ErrorKind.PROVIDER:
                kind = classify_provider_error(exc.message)
            return self._error_response(request.name, kind, exc.message)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            return self._error_response(request.name, classify_provider_error(message), message)

        return ToolResponse(text=_to_text(result))

    def _validate(self, name: str, arguments: Optional[dict[str, Any]]) -> dict[str, Any]:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolValidationError(f"Invalid arguments for {name}: arguments must be an object")

        error = best_match(self._validators[name].iter_errors(arguments))
        if error is not None:
            location = ".".join(str(part) for part in error.absolute_path)
            detail = f"{error.message} (at '{location}')" if location else error.message
            raise ToolValidationError(f"Invalid arguments for {name}: {detail}")
        return arguments

    def _error_response(self, tool: str, kind: ErrorKind, message: str) -> ToolResponse:
        logger.warning("%s failed [%s]: %s", tool, kind.value, message)
        if kind is ErrorKind.AUTHENTICATION:
            return ToolResponse(text=f"{AUTH_REMEDIATION}\nDetails: {message}", is_error=True)
        return ToolResponse(text=message, is_error=True)

    def _resolve(self, arguments: dict[str, Any]) -> str:
        return resolve_project(arguments.get("project"), self.session)

    # -------------------------------------------------------------------------
    # Identity & session tools
    # -------------------------------------------------------------------------
    async def _list_projects(self, arguments: dict[str, Any]) -> HandlerResult:
        projects = await self.providers.identity.list_projects()
        return {
            "activeProjectId": self.session.get(),
            "projects": [
                {"projectId": p.project_id, "displayName": p.display_name, "state": p.state}
                for p in projects
            ],
        }

    async def _set_active_project(self, arguments: dict[str, Any]) -> HandlerResult:
        project_id = arguments["projectId"]

        async with self._switch_lock:
            try:
                report = await self.gate.check_access(project_id)
            except ControlPlaneError as exc:
                raise exc.__class__(
                    f"Cannot set active project to '{project_id}': {exc.message}"
                ) from exc
            except Exception as exc:
                raise ProviderError(
                    f"Cannot set active project to '{project_id}': {exc}"
                ) from exc

            if PROJECT_ACCESS_PERMISSION in report.missing_permissions:
                raise ProviderError(
                    f"Cannot set active project to '{project_id}': {report.identity} lacks "
                    f"{PROJECT_ACCESS_PERMISSION} (the project does not exist or is not accessible)."
                )

            self.session.set(project_id)

        text = f"Active project context set to: {project_id}"
        unavailable = [name for name, ok in report.capabilities.items() if not ok]
        if unavailable:
            text += (
                f"\nNote: capabilities unavailable on this project: {', '.join(unavailable)} "
                f"(missing permissions: {', '.join(report.missing_permissions)})."
            )
        return text

    async def _test_iam_identity(self, arguments: dict[str, Any]) -> HandlerResult:
        identity = await self.providers.identity.get_identity()
        project = arguments.get("project") or self.session.get() or identity.project_id or ""
        report = await self.gate.verify(identity, project)
        return report.to_dict()

    # -------------------------------------------------------------------------
    # Observability & cost tools
    # -------------------------------------------------------------------------
    async def _get_service_health(self, arguments: dict[str, Any]) -> HandlerResult:
        project = self._resolve(arguments)
        service = arguments["service"]
        metrics = await self.providers.health.fetch_metrics(service, project)
        return build_health_report(service, project, metrics)

    async def _get_cloud_cost_breakdown(self, arguments: dict[str, Any]) -> HandlerResult:
        project = self._resolve(arguments)
        billing = await self.providers.cost.get_billing_status(project)
        cost_data = await self.providers.cost.fetch_cost_data(project)
        return {
            "project_id": project,
            "billingEnabled": billing.billing_enabled,
            "billingAccountName": billing.billing_account_name,
            "top_service_drilldown": cost_data.to_dict(),
            "ai_insight": generate_insight(cost_data),
        }

    async def _explore_logs(self, arguments: dict[str, Any]) -> HandlerResult:
        log_filter = build_log_filter(
            query=arguments.get("query"),
            severity=arguments.get("severity"),
            resource_type=arguments.get("resourceType"),
        )
        project = self._resolve(arguments)
        limit = arguments.get("limit", DEFAULT_LOG_LIMIT)
        entries = await self.providers.logging.fetch_logs(project, log_filter, limit)
        return {
            "project": project,
            "filter": log_filter,
            "count": len(entries),
            "entries": [entry.to_dict() for entry in entries],
        }

    async def _check_quota_status(self, arguments: dict[str, Any]) -> HandlerResult:
        project = self._resolve(arguments)
        quotas = await self.providers.quotas.get_quota_usage(project)
        if not quotas:
            return {"project": project, "message": NO_QUOTA_USAGE_MESSAGE, "quotas": []}
        return {"project": project, "quotas": [q.to_dict() for q in quotas]}

    async def _audit_security_findings(self, arguments: dict[str, Any]) -> HandlerResult:
        project = self._resolve(arguments)
        severity = arguments.get("severity", "HIGH")
        findings = await self.providers.security.list_findings(project, severity)
        return {
            "project": project,
            "severity": severity,
            "count": len(findings),
            "findings": [f.to_dict() for f in findings],
        }

    async def _get_optimization_recommendations(self, arguments: dict[str, Any]) -> HandlerResult:
        project = self._resolve(arguments)
        location = arguments.get("location", "global")
        recommendations = await collect_recommendations(
            self.providers.optimization, project, location
        )
        return {
            "project": project,
            "location": location,
            "count": len(recommendations),
            "total_monthly_savings": total_savings(recommendations),
            "recommendations": [r.to_dict() for r in recommendations],
        }

    async def _generate_architecture_diagram(self, arguments: dict[str, Any]) -> HandlerResult:
        project = self._resolve(arguments)
        resources = await self.providers.architecture.discover_resources(project)
        diagram = build_mermaid_diagram(project, resources)
        if diagram is None:
            return NO_RESOURCES_MESSAGE
        return diagram

    # -------------------------------------------------------------------------
    # Change-making tools
    # -------------------------------------------------------------------------
    async def _trigger_deployment(self, arguments: dict[str, Any]) -> HandlerResult:
        if arguments.get("approval") is not True:
            raise ToolValidationError(DEPLOYMENT_APPROVAL_MESSAGE)

        project = self._resolve(arguments)
        service = arguments["service"]
        result = await self.providers.deployment.trigger_deployment(service, project)
        return {
            "service": service,
            "project": project,
            "buildId": result.build_id,
            "status": result.status,
            "environment": result.environment,
        }

    async def _get_ci_pipeline_status(self, arguments: dict[str, Any]) -> HandlerResult:
        project = self._resolve(arguments)
        status = await self.providers.deployment.get_ci_status(arguments["repo"], project)
        return {
            "repo": status.repo,
            "project": project,
            "lastStatus": status.last_status,
            "durationSeconds": status.duration_seconds,
            "lastCommit": status.last_commit,
        }

    async def _manage_resource(self, arguments: dict[str, Any]) -> HandlerResult:
        resource_type = arguments["resourceType"]
        action = arguments["action"]

        if resource_type == "gce" and action not in ("start", "stop"):
            raise ToolValidationError(GCE_RESTART_MESSAGE)
        if resource_type == "run" and action != "restart":
            raise ToolValidationError(RUN_START_STOP_MESSAGE)

        project = self._resolve(arguments)
        name = arguments["resourceName"]
        location = arguments["location"]

        if resource_type == "gce":
            op = await self.providers.resources.manage_gce_instance(project, location, name, action)
        else:
            op = await self.providers.resources.restart_run_service(project, location, name)

        return {
            "status": op.status,
            "operationId": op.operation_id,
            "target": op.target,
            "action": action,
        }
