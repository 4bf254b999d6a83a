import pytest

from core.errors import ToolValidationError
from core.logs import LOG_SEVERITIES, build_log_filter


def test_empty_filter():
    assert build_log_filter() == ""


def test_all_parts_in_order():
    assert build_log_filter(query="timeout", severity="warning", resource_type="cloud_run_revision") == (
        'severity >= "WARNING" AND resource.type = "cloud_run_revision" AND '
        '(textPayload:"timeout" OR jsonPayload:"timeout" OR protoPayload:"timeout")'
    )


def test_single_part_has_no_joiner():
    assert build_log_filter(resource_type="gce_instance") == 'resource.type = "gce_instance"'


def test_query_is_quoted_and_escaped():
    log_filter = build_log_filter(query='say "hi" \\ bye')

    assert 'textPayload:"say \\"hi\\" \\\\ bye"' in log_filter


@pytest.mark.parametrize("severity", ["error", "Error", "ERROR", " error "])
def test_severity_is_case_insensitive(severity):
    assert build_log_filter(severity=severity) == 'severity >= "ERROR"'


@pytest.mark.parametrize("severity", [s.lower() for s in LOG_SEVERITIES])
def test_every_lowercase_severity_is_accepted(severity):
    assert build_log_filter(severity=severity) == f'severity >= "{severity.upper()}"'


def test_unknown_severity_is_rejected():
    with pytest.raises(ToolValidationError, match="unknown severity 'loud'"):
        build_log_filter(severity="loud")
