"""Project resolution precedence and session state."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from core.errors import MISSING_PROJECT_REMEDIATION, MissingProjectError
from core.resolver import resolve_project
from core.session import Session

project_ids = st.text(min_size=1, max_size=30)
maybe_project = st.one_of(st.none(), st.just(""), project_ids)


@given(explicit=maybe_project, active=maybe_project)
def test_resolution_precedence(explicit, active):
    session = Session(active)

    if explicit:
        assert resolve_project(explicit, session) == explicit
    elif active:
        assert resolve_project(explicit, session) == active
    else:
        with pytest.raises(MissingProjectError) as excinfo:
            resolve_project(explicit, session)
        assert excinfo.value.message == MISSING_PROJECT_REMEDIATION


@given(explicit=project_ids, active=maybe_project)
def test_resolution_never_mutates_session(explicit, active):
    session = Session(active)

    resolve_project(explicit, session)

    assert session.get() == (active or None)


def test_session_set_and_get():
    session = Session()
    session.set("proj-a")
    session.set("proj-b")

    assert session.get() == "proj-b"


def test_session_rejects_empty_project():
    session = Session("proj-a")

    with pytest.raises(ValueError):
        session.set("")
    assert session.get() == "proj-a"
