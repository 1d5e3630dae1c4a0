"""Tests for FilterCompiler and PredicateExecutor."""

from __future__ import annotations

import random

import pytest
from filter_corpus import random_filter, random_graph

from cqrs_ddd_relation_filters import (
    EMPTY_MATCH,
    FALSE,
    TRUE,
    AllOf,
    And,
    AnyOf,
    Comparison,
    EngineOptions,
    Exists,
    FilterCompiler,
    FilterDepthError,
    FilterEvaluator,
    FilterOperator,
    FilterValidator,
    LinkAbsent,
    Negation,
    Not,
    Or,
    PredicateExecutor,
    Quantifier,
    ScalarCondition,
    ToManyRelation,
    ToOneRelation,
    render,
)

COMPLETE = ScalarCondition("isComplete", FilterOperator.EQUALS, True)
IS_COMPLETE = Comparison("isComplete", FilterOperator.EQUALS, True)


@pytest.fixture
def compiler(schema) -> FilterCompiler:
    return FilterCompiler(schema)


@pytest.fixture
def raw_compiler(schema) -> FilterCompiler:
    return FilterCompiler(schema, EngineOptions(fold_constants=False))


# ══════════════════════════════════════════════════════════════════════
# Structure of compiled predicates
# ══════════════════════════════════════════════════════════════════════


class TestLowering:
    def test_scalar_condition(self, compiler) -> None:
        assert compiler.compile(COMPLETE, "Task") == IS_COMPLETE

    def test_connectives(self, raw_compiler) -> None:
        node = Or((COMPLETE, Not((COMPLETE,))))
        assert raw_compiler.compile(node, "Task") == AnyOf(
            (IS_COMPLETE, Negation(AllOf((IS_COMPLETE,))))
        )

    def test_quantifiers(self, compiler) -> None:
        some = ToManyRelation("tasks", Quantifier.SOME, COMPLETE)
        none = ToManyRelation("tasks", Quantifier.NONE, COMPLETE)
        every = ToManyRelation("tasks", Quantifier.EVERY, COMPLETE)

        assert compiler.compile(some, "Person") == Exists("tasks", "Task", IS_COMPLETE)
        assert compiler.compile(none, "Person") == Negation(
            Exists("tasks", "Task", IS_COMPLETE)
        )
        assert compiler.compile(every, "Person") == Negation(
            Exists("tasks", "Task", Negation(IS_COMPLETE))
        )

    @pytest.mark.parametrize("fold", [True, False])
    def test_every_empty_match_is_true_literal(self, schema, fold) -> None:
        compiler = FilterCompiler(schema, EngineOptions(fold_constants=fold))
        node = ToManyRelation("tasks", Quantifier.EVERY, EMPTY_MATCH)
        assert compiler.compile(node, "Person") == TRUE

    def test_empty_match_existence(self, compiler) -> None:
        assert compiler.compile(
            ToManyRelation("tasks", Quantifier.SOME, EMPTY_MATCH), "Person"
        ) == Exists("tasks", "Task", TRUE)
        assert compiler.compile(
            ToManyRelation("tasks", Quantifier.NONE, EMPTY_MATCH), "Person"
        ) == Negation(Exists("tasks", "Task", TRUE))

    def test_to_one(self, compiler) -> None:
        assert compiler.compile(ToOneRelation("assignedTo"), "Task") == LinkAbsent(
            "assignedTo"
        )
        inner = ScalarCondition("role", FilterOperator.EQUALS, "admin")
        assert compiler.compile(ToOneRelation("assignedTo", inner), "Task") == AllOf(
            (
                Negation(LinkAbsent("assignedTo")),
                Exists(
                    "assignedTo",
                    "Person",
                    Comparison("role", FilterOperator.EQUALS, "admin"),
                    many=False,
                ),
            )
        )

    def test_constant_folding(self, compiler) -> None:
        assert compiler.compile(And(()), "Task") == TRUE
        assert compiler.compile(Or(()), "Task") == FALSE
        assert compiler.compile(Not(()), "Task") == FALSE
        assert compiler.compile(And((COMPLETE, Or(()))), "Task") == FALSE
        assert compiler.compile(Or((COMPLETE, And(()))), "Task") == TRUE
        assert compiler.compile(Not((Not((COMPLETE,)),)), "Task") == IS_COMPLETE
        assert (
            compiler.compile(ToManyRelation("tasks", Quantifier.SOME, Or(())), "Person")
            == FALSE
        )
        assert (
            compiler.compile(ToManyRelation("tasks", Quantifier.EVERY, And(())), "Person")
            == TRUE
        )

    def test_depth_limit(self, schema) -> None:
        compiler = FilterCompiler(schema, EngineOptions(max_depth=2))
        with pytest.raises(FilterDepthError):
            compiler.compile(Not((Not((COMPLETE,)),)), "Task")

    def test_render(self, compiler) -> None:
        node = ToManyRelation(
            "tasks",
            Quantifier.EVERY,
            And((COMPLETE, ToOneRelation("assignedTo"))),
        )
        assert render(compiler.compile(node, "Person")) == (
            "NOT EXISTS tasks:Task [NOT (isComplete equals True AND assignedTo IS ABSENT)]"
        )


# ══════════════════════════════════════════════════════════════════════
# Predicate execution
# ══════════════════════════════════════════════════════════════════════


class TestExecutor:
    def test_executes_compiled_predicate(self, compiler, graph) -> None:
        executor = PredicateExecutor(graph)
        every = compiler.compile(
            ToManyRelation("tasks", Quantifier.EVERY, COMPLETE), "Person"
        )
        assert executor.filter(every, "Person") == ["p_idle", "p_done"]
        absent = compiler.compile(ToOneRelation("assignedTo"), "Task")
        assert executor.filter(absent, "Task") == ["t_world"]

    def test_rejects_unknown_expression(self, graph) -> None:
        with pytest.raises(TypeError):
            PredicateExecutor(graph).execute("nope", "Task", "t_hello")  # type: ignore[arg-type]


# ══════════════════════════════════════════════════════════════════════
# Compiler / evaluator equivalence over a random corpus
# ══════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("fold", [True, False])
@pytest.mark.parametrize("seed", range(25))
def test_compiled_predicate_matches_evaluator(schema, seed, fold):
    graph = random_graph(schema, seed)
    evaluator = FilterEvaluator(schema, graph)
    executor = PredicateExecutor(graph)
    compiler = FilterCompiler(schema, EngineOptions(fold_constants=fold))
    validator = FilterValidator(schema)
    rng = random.Random(seed * 7919)

    for _ in range(20):
        kind = rng.choice(schema.kinds)
        node = random_filter(rng, schema, kind)
        validator.validate(node, kind)
        predicate = compiler.compile(node, kind)
        assert executor.filter(predicate, kind.name) == evaluator.filter(
            node, kind.name
        ), render(predicate)


def test_corpus_includes_self_edges_and_empty_sets(schema):
    """Guard the corpus itself: some graphs must exercise both shapes."""
    self_edges = empty_sets = 0
    for seed in range(25):
        graph = random_graph(schema, seed)
        for person in graph.list_ids("Person"):
            follows = list(graph.resolve_many("Person", person, "follows"))
            self_edges += person in follows
            empty_sets += not list(graph.resolve_many("Person", person, "tasks"))
    assert self_edges > 0
    assert empty_sets > 0
