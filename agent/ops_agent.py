# =============================================================================
# agent/ops_agent.py  -  Google ADK Agent Configuration
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Creates the Google ADK agent that talks to the user and calls the
#   gcp-control-plane MCP tools.
#
#   ADK is the agent framework (tool calling, sessions); the LLM is reached
#   through LiteLlm, so any provider LiteLlm supports can be plugged in by
#   changing CONTROL_PLANE_AGENT_MODEL.
#
#       ┌──────────────────────────┐        stdio        ┌────────────────────┐
#       │  ADK Agent (LiteLlm)     │ ──────────────────▶ │ tools/mcp_server   │
#       │  prompt: agent/prompt.py │ ◀────────────────── │ FastMCP, 13 tools  │
#       └──────────────────────────┘                     └────────────────────┘
#                                                                  │
#                                                                  ▼
#                                                        core/ + providers/
#
# MCP CONNECTION:
#   ADK starts the MCP server as a subprocess and speaks MCP over its
#   stdin/stdout.  The subprocess gets a copy of our environment so that
#   GOOGLE_CLOUD_PROJECT, USE_MOCK_GCP and the ADC variables reach it.
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_cloud_ops_prompt

DEFAULT_AGENT_MODEL = "openrouter/openai/gpt-4o"


def create_agent() -> Agent:
    """Create the cloud operations agent wired to the MCP tool server."""
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    # sys.executable keeps the subprocess in the same virtualenv as we are.
    mcp_tools = MCPToolset(
        connection_params=StdioServerParameters(
            command=sys.executable,
            args=["-m", "tools.mcp_server"],
            cwd=project_root,
            env=dict(os.environ),
        ),
    )

    model = os.getenv("CONTROL_PLANE_AGENT_MODEL", DEFAULT_AGENT_MODEL)

    return Agent(
        name="gcp_control_plane_assistant",
        model=LiteLlm(model=model),
        instruction=get_cloud_ops_prompt(),
        tools=[mcp_tools],
    )
