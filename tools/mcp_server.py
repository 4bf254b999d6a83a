# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Registers every MCP tool the agent can call.  Each tool is a thin
#   wrapper: it collects its arguments, forwards them to the ToolDispatcher
#   (core/dispatcher.py) and turns the uniform response into MCP output.
#
# HOW IT WORKS (the flow):
#   1. The agent decides it needs information (e.g., service health)
#   2. It calls a tool by name via MCP (e.g., "get_service_health")
#   3. FastMCP routes the call to the decorated function below
#   4. The function builds a ToolRequest and awaits dispatcher.handle()
#   5. isError responses are raised as ToolError (MCP isError=true);
#      successful ones are returned as text
#
#   Validation, project resolution, the permission gate and error
#   classification all live in the dispatcher, not here.  The tool
#   descriptions come from core/catalog.py so the two never drift.
#
# TOOL NAMING CONVENTIONS:
#   - get_* / check_* / list_* / explore_* / audit_*  -> read-only
#   - set_active_project                              -> session-only change
#   - trigger_deployment / manage_resource           -> change cloud state
#
# RUNNING THIS SERVER:
#     a) Run standalone:  python -m tools.mcp_server
#     b) Connected to the Google ADK agent via stdio transport (agent/)
# =============================================================================

import logging
import sys
from typing import Any, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

# The tools layer depends on core/ and providers/, never on agent/.
from core.catalog import get_tool_schema
from core.config import GCPConfig, load_config
from core.dispatcher import ToolDispatcher
from core.models import ToolRequest
from core.session import Session
from providers import build_providers

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because the MCP server talks to the agent over STDOUT.
# Anything else printed to stdout would corrupt the MCP JSON stream.
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for successful responses
#     - YELLOW for status messages and tool errors
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status / errors
_RESET = "\033[0m"

# Long JSON payloads are cut in the log line only, never in the response.
_LOG_PREVIEW_CHARS = 400

logger = logging.getLogger("mcp")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log a status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, text: str) -> str:
    """Log a compact preview of the response in GREEN, then return it."""
    preview = " ".join(text.split())
    if len(preview) > _LOG_PREVIEW_CHARS:
        preview = preview[:_LOG_PREVIEW_CHARS] + "..."
    logger.info(f"{_GREEN}  ← {tool_name} response: {preview}{_RESET}")
    return text


# =============================================================================
# Server + dispatcher wiring
# =============================================================================
# The name "gcp-control-plane" becomes the server identity in MCP.
mcp = FastMCP("gcp-control-plane")

_dispatcher: Optional[ToolDispatcher] = None


def build_dispatcher(config: GCPConfig) -> ToolDispatcher:
    providers = build_providers(config)
    session = Session(config.default_project_id)
    return ToolDispatcher(session, providers)


def configure(dispatcher: Optional[ToolDispatcher]) -> None:
    """Install the dispatcher every tool forwards to."""
    global _dispatcher
    _dispatcher = dispatcher


def get_dispatcher() -> ToolDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_dispatcher(load_config())
    return _dispatcher


async def _call_tool(tool_name: str, **params: Any) -> str:
    arguments = {k: v for k, v in params.items() if v is not None}
    _log_request(tool_name, **arguments)

    response = await get_dispatcher().handle(ToolRequest(name=tool_name, arguments=arguments))
    if response.is_error:
        _log_status(f"{tool_name} returned an error")
        raise ToolError(response.text)
    return _log_response(tool_name, response.text)


def _describe(tool_name: str) -> str:
    return get_tool_schema(tool_name).description


# =============================================================================
# Identity & session tools
# =============================================================================
# list_projects is usually the FIRST call: the agent needs a project ID
# before anything else can run (unless GOOGLE_CLOUD_PROJECT is set).
# =============================================================================
@mcp.tool(name="list_projects", description=_describe("list_projects"))
async def list_projects() -> str:
    return await _call_tool("list_projects")


@mcp.tool(name="set_active_project", description=_describe("set_active_project"))
async def set_active_project(projectId: str) -> str:
    return await _call_tool("set_active_project", projectId=projectId)


@mcp.tool(name="test_iam_identity", description=_describe("test_iam_identity"))
async def test_iam_identity(project: Optional[str] = None) -> str:
    return await _call_tool("test_iam_identity", project=project)


# =============================================================================
# Observability & cost tools (read-only)
# =============================================================================
@mcp.tool(name="get_service_health", description=_describe("get_service_health"))
async def get_service_health(service: str, project: Optional[str] = None) -> str:
    return await _call_tool("get_service_health", service=service, project=project)


@mcp.tool(name="get_cloud_cost_breakdown", description=_describe("get_cloud_cost_breakdown"))
async def get_cloud_cost_breakdown(project: Optional[str] = None) -> str:
    return await _call_tool("get_cloud_cost_breakdown", project=project)


@mcp.tool(name="get_ci_pipeline_status", description=_describe("get_ci_pipeline_status"))
async def get_ci_pipeline_status(repo: str, project: Optional[str] = None) -> str:
    return await _call_tool("get_ci_pipeline_status", repo=repo, project=project)


@mcp.tool(name="explore_logs", description=_describe("explore_logs"))
async def explore_logs(
    project: Optional[str] = None,
    query: Optional[str] = None,
    limit: Optional[int] = None,
    severity: Optional[str] = None,
    resourceType: Optional[str] = None,
) -> str:
    return await _call_tool(
        "explore_logs",
        project=project,
        query=query,
        limit=limit,
        severity=severity,
        resourceType=resourceType,
    )


@mcp.tool(name="audit_security_findings", description=_describe("audit_security_findings"))
async def audit_security_findings(
    project: Optional[str] = None, severity: Optional[str] = None
) -> str:
    return await _call_tool("audit_security_findings", project=project, severity=severity)


@mcp.tool(
    name="get_optimization_recommendations",
    description=_describe("get_optimization_recommendations"),
)
async def get_optimization_recommendations(
    project: Optional[str] = None, location: Optional[str] = None
) -> str:
    return await _call_tool("get_optimization_recommendations", project=project, location=location)


@mcp.tool(name="check_quota_status", description=_describe("check_quota_status"))
async def check_quota_status(project: Optional[str] = None) -> str:
    return await _call_tool("check_quota_status", project=project)


@mcp.tool(
    name="generate_architecture_diagram",
    description=_describe("generate_architecture_diagram"),
)
async def generate_architecture_diagram(project: Optional[str] = None) -> str:
    return await _call_tool("generate_architecture_diagram", project=project)


# =============================================================================
# Change-making tools
# =============================================================================
# Both are guarded in the dispatcher BEFORE any provider call:
#   - trigger_deployment needs approval=True
#   - manage_resource only accepts gce:start, gce:stop and run:restart
# =============================================================================
@mcp.tool(name="trigger_deployment", description=_describe("trigger_deployment"))
async def trigger_deployment(
    service: str, approval: bool, project: Optional[str] = None
) -> str:
    return await _call_tool("trigger_deployment", service=service, approval=approval, project=project)


@mcp.tool(name="manage_resource", description=_describe("manage_resource"))
async def manage_resource(
    resourceType: str,
    action: str,
    resourceName: str,
    location: str,
    project: Optional[str] = None,
) -> str:
    return await _call_tool(
        "manage_resource",
        resourceType=resourceType,
        action=action,
        resourceName=resourceName,
        location=location,
        project=project,
    )


# =============================================================================
# Server entry point
# =============================================================================
# python -m tools.mcp_server  (this is what the agent launches over stdio)
# =============================================================================
def main() -> int:
    load_dotenv()
    try:
        config = load_config()
        configure_logging(config.log_level)
        configure(build_dispatcher(config))
        logger.info(
            "Starting gcp-control-plane (active project: %s, mock: %s)",
            config.default_project_id or "<none>",
            config.use_mock,
        )
        mcp.run()
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("Fatal error while starting the MCP server")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
