# =============================================================================
# agent/console.py  -  Rendering ADK events for the interactive console
# =============================================================================
#
# The runner streams Events whose parts are one of:
#   - text               the agent talking (the last one is the answer)
#   - function_call      the agent asking an MCP tool for something
#   - function_response  what the MCP tool sent back
#
# A tool that fails (no active project, for instance) comes back as a
# function_response, not as an exception.  ADK reports it in one of two
# shapes, depending on where it failed:
#
#   {"isError": true, "content": [{"type": "text", "text": "..."}]}   MCP isError
#   {"error": "..."}                                                  raised in ADK
#
# tool_error() finds the message in either shape so the console can show it
# next to the tool call instead of leaving the operator to dig through the
# [MCP] stderr log.
#
# Nothing here imports ADK: events and parts are read by attribute, so the
# helpers can be exercised with plain objects.
# =============================================================================

import json
from dataclasses import dataclass, field
from typing import Any, Optional

_ARG_PREVIEW_CHARS = 120


@dataclass
class TurnSummary:
    """Everything worth showing for one user turn."""

    lines: list[str] = field(default_factory=list)
    final_text: str = ""
    tool_errors: int = 0


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    texts = []
    for item in content or []:
        if isinstance(item, dict):
            text = item.get("text")
        else:
            text = getattr(item, "text", None)
        if text:
            texts.append(text)
    return "\n".join(texts)


def tool_error(response: Any) -> Optional[str]:
    """Return the error text of a failed tool response, or None on success."""
    if hasattr(response, "model_dump"):
        response = response.model_dump()
    if not isinstance(response, dict):
        return None

    if response.get("error"):
        return str(response["error"])

    # ADK can wrap a non-dict tool result as {"result": ...}
    inner = response.get("result")
    if isinstance(inner, dict) or hasattr(inner, "model_dump"):
        return tool_error(inner)

    if response.get("isError") or response.get("is_error"):
        return _content_text(response.get("content")) or "tool reported an error"
    return None


def format_call(name: str, args: Optional[dict]) -> str:
    if not args:
        return f"{name}()"
    rendered = json.dumps(args, default=str)
    if len(rendered) > _ARG_PREVIEW_CHARS:
        rendered = rendered[:_ARG_PREVIEW_CHARS] + "..."
    return f"{name}({rendered})"


def summarize_event(event: Any, summary: TurnSummary) -> None:
    content = getattr(event, "content", None)
    parts = getattr(content, "parts", None) if content else None
    if not parts:
        return

    for part in parts:
        call = getattr(part, "function_call", None)
        if call:
            summary.lines.append(f"  🔧 Calling tool: {format_call(call.name, getattr(call, 'args', None))}")

        result = getattr(part, "function_response", None)
        if result:
            message = tool_error(getattr(result, "response", None))
            if message is None:
                summary.lines.append(f"  ✅ {result.name} returned")
            else:
                summary.tool_errors += 1
                first_line = message.strip().splitlines()[0] if message.strip() else message
                summary.lines.append(f"  ❌ {result.name} failed: {first_line}")

        text = getattr(part, "text", None)
        if text:
            summary.final_text = text
