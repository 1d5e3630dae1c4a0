"""Shared fixtures: a Person/Task/Tag schema and a small populated graph."""

from __future__ import annotations

import datetime

import pytest

from cqrs_ddd_relation_filters import (
    Cardinality,
    Direction,
    EntityKind,
    FieldDef,
    FilterEngine,
    FilterEvaluator,
    InMemoryGraph,
    RelationDef,
    ScalarType,
    SchemaRegistry,
)


def build_kinds() -> list[EntityKind]:
    """
    Person ──tasks (many) <> assignedTo (one)── Task ──tags (many)──▶ Tag

    Person also carries a two-sided self relation (mentor / mentees) and a
    one-sided self relation (follows).
    """
    person = EntityKind(
        name="Person",
        fields=(
            FieldDef(name="name", scalar_type=ScalarType.TEXT),
            FieldDef(name="age", scalar_type=ScalarType.INTEGER),
            FieldDef(
                name="role",
                scalar_type=ScalarType.ENUM,
                enum_values=("admin", "member"),
            ),
        ),
        relations=(
            RelationDef(
                name="tasks",
                target_kind="Task",
                cardinality=Cardinality.MANY,
                direction=Direction.TWO_SIDED,
                counterpart="assignedTo",
            ),
            RelationDef(
                name="mentor",
                target_kind="Person",
                cardinality=Cardinality.ONE,
                direction=Direction.TWO_SIDED,
                counterpart="mentees",
            ),
            RelationDef(
                name="mentees",
                target_kind="Person",
                cardinality=Cardinality.MANY,
                direction=Direction.TWO_SIDED,
                counterpart="mentor",
            ),
            RelationDef(
                name="follows",
                target_kind="Person",
                cardinality=Cardinality.MANY,
            ),
        ),
    )
    task = EntityKind(
        name="Task",
        fields=(
            FieldDef(name="label", scalar_type=ScalarType.TEXT),
            FieldDef(name="isComplete", scalar_type=ScalarType.BOOLEAN),
            FieldDef(name="priority", scalar_type=ScalarType.INTEGER),
            FieldDef(name="dueAt", scalar_type=ScalarType.TIMESTAMP),
        ),
        relations=(
            RelationDef(
                name="assignedTo",
                target_kind="Person",
                cardinality=Cardinality.ONE,
                direction=Direction.TWO_SIDED,
                counterpart="tasks",
            ),
            RelationDef(name="tags", target_kind="Tag", cardinality=Cardinality.MANY),
        ),
    )
    tag = EntityKind(
        name="Tag",
        fields=(FieldDef(name="name", scalar_type=ScalarType.TEXT),),
    )
    return [person, task, tag]


@pytest.fixture
def schema() -> SchemaRegistry:
    return SchemaRegistry(build_kinds())


@pytest.fixture
def graph(schema: SchemaRegistry) -> InMemoryGraph:
    """
    p_idle      no tasks
    p_done      t_hello (complete)
    p_busy      t_help (incomplete), t_misc (complete); mentored by p_done
    t_world     unassigned, tagged "urgent"
    """
    g = InMemoryGraph(schema)
    g.add("Person", "p_idle", name="Idle", age=30, role="member")
    g.add("Person", "p_done", name="Done", age=41, role="admin")
    g.add("Person", "p_busy", name="Busy", age=None, role="member")

    due = datetime.datetime(2024, 1, 1, 12, 0)
    g.add("Task", "t_hello", label="Hello", isComplete=True, priority=1, dueAt=due)
    g.add("Task", "t_help", label="Help desk", isComplete=False, priority=3)
    g.add("Task", "t_misc", label="misc", isComplete=True, priority=None)
    g.add("Task", "t_world", label="World", isComplete=False, priority=2)

    g.add("Tag", "g_urgent", name="urgent")
    g.add("Tag", "g_later", name="later")

    g.link("Person", "p_done", "tasks", "t_hello")
    g.link("Person", "p_busy", "tasks", "t_help")
    g.link("Task", "t_misc", "assignedTo", "p_busy")
    g.link("Person", "p_busy", "mentor", "p_done")
    g.link("Person", "p_busy", "follows", "p_busy")
    g.link("Task", "t_world", "tags", "g_urgent")
    return g


@pytest.fixture
def evaluator(schema: SchemaRegistry, graph: InMemoryGraph) -> FilterEvaluator:
    return FilterEvaluator(schema, graph)


@pytest.fixture
def engine(schema: SchemaRegistry) -> FilterEngine:
    return FilterEngine(schema)
