"""Console rendering of ADK events, including tool failures."""

from types import SimpleNamespace

from agent.console import TurnSummary, format_call, summarize_event, tool_error


def event(*parts):
    return SimpleNamespace(content=SimpleNamespace(parts=list(parts)))


def call_part(name, args=None):
    return SimpleNamespace(function_call=SimpleNamespace(name=name, args=args), function_response=None, text=None)


def response_part(name, response):
    return SimpleNamespace(
        function_call=None,
        function_response=SimpleNamespace(name=name, response=response),
        text=None,
    )


def text_part(text):
    return SimpleNamespace(function_call=None, function_response=None, text=text)


def test_mcp_is_error_response_is_detected():
    response = {"isError": True, "content": [{"type": "text", "text": "No active project set.\nCall list_projects"}]}

    assert tool_error(response) == "No active project set.\nCall list_projects"


def test_adk_error_response_is_detected():
    assert tool_error({"error": "boom"}) == "boom"


def test_wrapped_result_is_unwrapped():
    assert tool_error({"result": {"isError": True, "content": []}}) == "tool reported an error"
    assert tool_error({"result": '{"health_score": 90}'}) is None


def test_successful_response_is_not_an_error():
    assert tool_error({"isError": False, "content": [{"type": "text", "text": "{}"}]}) is None
    assert tool_error(None) is None


def test_format_call_truncates_long_arguments():
    assert format_call("list_projects", None) == "list_projects()"
    assert format_call("get_service_health", {"service": "api"}) == 'get_service_health({"service": "api"})'
    assert format_call("explore_logs", {"query": "x" * 500}).endswith("...)")


def test_turn_collects_calls_failures_and_final_text():
    summary = TurnSummary()

    summarize_event(event(call_part("get_service_health", {"service": "api"})), summary)
    summarize_event(
        event(response_part("get_service_health", {"isError": True, "content": [{"type": "text", "text": "403 denied"}]})),
        summary,
    )
    summarize_event(event(call_part("list_projects"), response_part("list_projects", {"content": []})), summary)
    summarize_event(event(text_part("thinking")), summary)
    summarize_event(event(text_part("The api service is degraded.")), summary)

    assert summary.lines == [
        '  🔧 Calling tool: get_service_health({"service": "api"})',
        "  ❌ get_service_health failed: 403 denied",
        "  🔧 Calling tool: list_projects()",
        "  ✅ list_projects returned",
    ]
    assert summary.tool_errors == 1
    assert summary.final_text == "The api service is degraded."


def test_event_without_content_is_ignored():
    summary = TurnSummary()

    summarize_event(SimpleNamespace(content=None), summary)

    assert summary == TurnSummary()
