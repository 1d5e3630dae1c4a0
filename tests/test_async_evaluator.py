"""Tests for AsyncFilterEvaluator."""

from __future__ import annotations

import random
from typing import Any

import pytest
from filter_corpus import random_filter, random_graph

from cqrs_ddd_relation_filters import (
    EMPTY_MATCH,
    AsyncFilterEvaluator,
    AsyncInMemoryGraph,
    DataAccessError,
    EngineOptions,
    FilterDepthError,
    FilterEvaluator,
    FilterOperator,
    InMemoryGraph,
    Not,
    Quantifier,
    ScalarCondition,
    ToManyRelation,
    ToOneRelation,
)


class StreamingAccess(AsyncInMemoryGraph):
    """Async access that records how far each related-id stream was consumed."""

    def __init__(self, graph: InMemoryGraph) -> None:
        super().__init__(graph)
        self.yielded = 0
        self.closed = 0
        self.opened = 0

    async def resolve_many(self, kind: str, entity_id: Any, relation: str):
        self.opened += 1
        try:
            async for target_id in super().resolve_many(kind, entity_id, relation):
                self.yielded += 1
                yield target_id
        finally:
            self.closed += 1


@pytest.fixture
def async_evaluator(schema, graph) -> AsyncFilterEvaluator:
    return AsyncFilterEvaluator(schema, graph.as_async())


@pytest.mark.asyncio
async def test_scalar_and_to_one(async_evaluator):
    assert await async_evaluator.filter(ToOneRelation("assignedTo"), "Task") == [
        "t_world"
    ]
    node = ScalarCondition("label", FilterOperator.CONTAINS, "He")
    assert await async_evaluator.filter(node, "Task") == ["t_hello", "t_help"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("quantifier", "expected"),
    [
        (Quantifier.SOME, ["p_done", "p_busy"]),
        (Quantifier.NONE, ["p_idle"]),
        (Quantifier.EVERY, ["p_idle", "p_done"]),
    ],
)
async def test_quantifiers(async_evaluator, quantifier, expected):
    node = ToManyRelation(
        "tasks", quantifier, ScalarCondition("isComplete", FilterOperator.EQUALS, True)
    )
    assert await async_evaluator.filter(node, "Person") == expected


@pytest.mark.asyncio
async def test_every_empty_match_never_opens_stream(schema, graph):
    access = StreamingAccess(graph)
    evaluator = AsyncFilterEvaluator(schema, access)
    node = ToManyRelation("tasks", Quantifier.EVERY, EMPTY_MATCH)
    assert await evaluator.filter(node, "Person") == ["p_idle", "p_done", "p_busy"]
    assert access.opened == 0


@pytest.mark.asyncio
async def test_existence_check_reads_one_item_and_closes(schema, graph):
    access = StreamingAccess(graph)
    evaluator = AsyncFilterEvaluator(schema, access)
    node = ToManyRelation("tasks", Quantifier.SOME, EMPTY_MATCH)
    assert await evaluator.matches(node, "Person", "p_busy") is True
    assert access.yielded == 1
    assert access.closed == access.opened == 1


@pytest.mark.asyncio
async def test_every_stops_at_first_counterexample(schema, graph):
    access = StreamingAccess(graph)
    evaluator = AsyncFilterEvaluator(schema, access)
    node = ToManyRelation(
        "tasks", Quantifier.EVERY, ScalarCondition("isComplete", FilterOperator.EQUALS, True)
    )
    assert await evaluator.matches(node, "Person", "p_busy") is False
    assert access.yielded == 1
    assert access.closed == 1


@pytest.mark.asyncio
async def test_short_circuit_disabled_drains_stream(schema, graph):
    access = StreamingAccess(graph)
    evaluator = AsyncFilterEvaluator(
        schema, access, options=EngineOptions(short_circuit=False)
    )
    node = ToManyRelation(
        "tasks", Quantifier.EVERY, ScalarCondition("isComplete", FilterOperator.EQUALS, True)
    )
    assert await evaluator.matches(node, "Person", "p_busy") is False
    assert access.yielded == 2


@pytest.mark.asyncio
async def test_errors_propagate(schema, graph, async_evaluator):
    with pytest.raises(DataAccessError):
        await async_evaluator.matches(
            ToManyRelation("tasks", Quantifier.SOME), "Person", "p_missing"
        )

    shallow = AsyncFilterEvaluator(
        schema, graph.as_async(), options=EngineOptions(max_depth=1)
    )
    with pytest.raises(FilterDepthError):
        await shallow.matches(
            Not((ScalarCondition("label", FilterOperator.EQUALS, "x"),)),
            "Task",
            "t_hello",
        )


@pytest.mark.asyncio
@pytest.mark.parametrize("seed", range(10))
async def test_matches_sync_evaluator(schema, seed):
    graph = random_graph(schema, seed)
    sync = FilterEvaluator(schema, graph)
    evaluator = AsyncFilterEvaluator(schema, graph.as_async())
    rng = random.Random(seed)
    for _ in range(15):
        kind = rng.choice(schema.kinds)
        node = random_filter(rng, schema, kind)
        assert await evaluator.filter(node, kind.name) == sync.filter(node, kind.name), node
