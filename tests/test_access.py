"""Tests for the in-memory data layer and the access protocols."""

from __future__ import annotations

import pytest

from cqrs_ddd_relation_filters import (
    AsyncDataAccess,
    DataAccess,
    DataAccessError,
    InMemoryGraph,
    UnknownEntityKindError,
)


def test_graph_satisfies_protocols(graph):
    assert isinstance(graph, DataAccess)
    assert isinstance(graph.as_async(), AsyncDataAccess)


def test_add_accepts_mapping_and_keywords(graph):
    graph.add("Task", "t_new", {"label": "New"}, priority=5)
    assert graph.get_value("Task", "t_new", "label") == "New"
    assert graph.get_value("Task", "t_new", "priority") == 5
    assert graph.get_value("Task", "t_new", "isComplete") is None


def test_add_rejects_unknown_field(graph):
    with pytest.raises(DataAccessError) as exc_info:
        graph.add("Task", "t_bad", title="oops")
    assert exc_info.value.member == "title"


def test_add_rejects_unknown_kind(graph):
    with pytest.raises(UnknownEntityKindError):
        graph.add("Project", "x")


def test_both_views_resolve_the_same_edges(graph):
    assert list(graph.resolve_many("Person", "p_busy", "tasks")) == ["t_help", "t_misc"]
    assert graph.resolve_one("Task", "t_help", "assignedTo") == "p_busy"
    assert graph.resolve_one("Task", "t_world", "assignedTo") is None


def test_link_is_idempotent(graph):
    graph.link("Person", "p_done", "tasks", "t_hello")
    graph.link("Task", "t_hello", "assignedTo", "p_done")
    assert list(graph.resolve_many("Person", "p_done", "tasks")) == ["t_hello"]


def test_link_enforces_to_one_through_counterpart(graph):
    with pytest.raises(DataAccessError) as exc_info:
        graph.link("Person", "p_idle", "tasks", "t_hello")
    assert exc_info.value.member == "assignedTo"
    assert list(graph.resolve_many("Person", "p_idle", "tasks")) == []


def test_link_enforces_to_one_on_own_side(graph):
    with pytest.raises(DataAccessError):
        graph.link("Task", "t_help", "assignedTo", "p_idle")


def test_link_requires_existing_target(graph):
    with pytest.raises(DataAccessError):
        graph.link("Task", "t_world", "assignedTo", "p_ghost")


def test_unlink_removes_edge_from_both_views(graph):
    graph.unlink("Task", "t_help", "assignedTo", "p_busy")
    assert list(graph.resolve_many("Person", "p_busy", "tasks")) == ["t_misc"]
    assert graph.resolve_one("Task", "t_help", "assignedTo") is None
    graph.link("Person", "p_idle", "tasks", "t_help")
    assert graph.resolve_one("Task", "t_help", "assignedTo") == "p_idle"


def test_self_edges(graph):
    assert list(graph.resolve_many("Person", "p_busy", "follows")) == ["p_busy"]


@pytest.mark.parametrize(
    "call",
    [
        lambda g: g.get_value("Task", "t_missing", "label"),
        lambda g: g.get_value("Task", "t_hello", "assignedTo"),
        lambda g: g.resolve_one("Task", "t_hello", "label"),
        lambda g: g.resolve_many("Person", "p_missing", "tasks"),
    ],
)
def test_reads_raise_data_access_error(graph, call):
    with pytest.raises(DataAccessError):
        call(graph)


def test_data_access_error_to_dict(graph):
    with pytest.raises(DataAccessError) as exc_info:
        graph.get_value("Task", "t_missing", "label")
    assert exc_info.value.to_dict() == {
        "error": "DATA_ACCESS_ERROR",
        "message": "Task with id='t_missing' not found",
        "kind": "Task",
        "entity_id": "t_missing",
        "member": None,
    }


def test_empty_graph_lists_nothing(schema):
    assert InMemoryGraph(schema).list_ids("Person") == []


@pytest.mark.asyncio
async def test_async_adapter_streams_related_ids(graph):
    access = graph.as_async()
    assert await access.list_ids("Person") == ["p_idle", "p_done", "p_busy"]
    assert await access.get_value("Person", "p_done", "role") == "admin"
    assert await access.resolve_one("Task", "t_misc", "assignedTo") == "p_busy"
    assert [t async for t in access.resolve_many("Person", "p_busy", "tasks")] == [
        "t_help",
        "t_misc",
    ]
