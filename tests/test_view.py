import pytest

from unity_project_setup.view import (
    ADD_HEADER,
    REMOVE_HEADER,
    UPDATING_NOTICE,
    name_at,
    parse_selection,
    render,
)


def test_render_fetching(session):
    session.reconciler.activate()
    assert render(session.reconciler) == "Fetching packages..."


def test_render_ready_lists(ready_session):
    r = ready_session.reconciler
    r.set_available("c", True)
    text = render(r)
    assert REMOVE_HEADER in text and ADD_HEADER in text
    assert "    1. [x] b" in text
    assert "    1. [ ] a" in text
    assert "    2. [x] c" in text


def test_render_updating(ready_session):
    r = ready_session.reconciler
    r.set_available("a", True)
    r.commit()
    text = render(r)
    assert text.startswith("Updating packages...")
    assert UPDATING_NOTICE in text


def test_parse_selection():
    assert parse_selection("r 2").action == "remove"
    assert parse_selection("a 1 3").indices == [1, 3]
    assert parse_selection(" C ").action == "commit"
    assert parse_selection("q").action == "quit"


@pytest.mark.parametrize("text", ["", "x 1", "a", "a one", "a 0", "c 1"])
def test_parse_selection_rejects(text):
    with pytest.raises(ValueError):
        parse_selection(text)


def test_name_at():
    entries = {"a": False, "c": True}
    assert name_at(entries, 2) == "c"
    with pytest.raises(IndexError):
        name_at(entries, 3)
