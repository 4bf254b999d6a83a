# =============================================================================
# main.py  -  Interactive console for the GCP control-plane agent
# =============================================================================
#
# HOW TO RUN:
#   python main.py                     # live GCP (Application Default Credentials)
#   USE_MOCK_GCP=true python main.py   # deterministic demo data, no credentials
#
# WHAT HAPPENS:
#   1. .env is loaded (OPENROUTER_API_KEY, GOOGLE_CLOUD_PROJECT, ...)
#   2. The ADK agent is created; it launches tools/mcp_server.py over stdio
#   3. Each line you type is sent to the agent, which calls MCP tools
#   4. Tool calls and their outcomes are echoed as they stream (a failing
#      tool shows its error text, see agent/console.py), then the answer
#
# To use the MCP server from another MCP client instead of this console,
# run `python -m tools.mcp_server` directly.
# =============================================================================

import asyncio

from dotenv import load_dotenv

# LiteLlm reads its API key from the environment when the agent is built.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.console import TurnSummary, summarize_event
from agent.ops_agent import create_agent

APP_NAME = "gcp_control_plane"
USER_ID = "operator"


async def run_agent():
    """Run the cloud operations agent as an interactive console."""
    print("=" * 70)
    print("  GCP CONTROL PLANE ASSISTANT")
    print("  Google ADK + FastMCP")
    print("=" * 70)
    print("\n🔧 Initializing agent...")
    agent = create_agent()

    session_service = InMemorySessionService()
    runner = Runner(agent=agent, app_name=APP_NAME, session_service=session_service)
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)

    print("✅ Agent ready.\n")
    print("💬 Ask about service health, costs, logs, security, quotas...")
    print("   (Type 'quit' to exit)\n")
    print("-" * 70)

    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break
        if not user_input:
            continue

        user_message = types.Content(role="user", parts=[types.Part(text=user_input)])

        print("\n🤖 Working...\n")
        print("-" * 70)

        summary = TurnSummary()
        async for event in runner.run_async(
            user_id=USER_ID,
            session_id=session.id,
            new_message=user_message,
        ):
            # Print tool activity as it streams, not after the turn ends.
            shown = len(summary.lines)
            summarize_event(event, summary)
            for line in summary.lines[shown:]:
                print(line)

        print("-" * 70)
        if summary.final_text:
            print(f"\n🤖 Agent:\n\n{summary.final_text}")
        elif summary.tool_errors:
            print(f"\n⚠️  No answer; {summary.tool_errors} tool call(s) failed (see ❌ above).")
        else:
            print("\n⚠️  No response generated. Check the [MCP] log lines above for errors.")

        print("\n" + "=" * 70)


if __name__ == "__main__":
    asyncio.run(run_agent())
