"""Tests for the relation graph adjacency view."""

from __future__ import annotations

import pytest

from revalor.engine.graph import RelationGraph, build_graph
from revalor.exceptions import ConstructionError
from revalor.models import Relation


def _chain() -> list[Relation]:
    return [
        Relation(id=10, divisor_id=1, dividend_id=2),
        Relation(id=20, divisor_id=2, dividend_id=3),
        Relation(id=30, divisor_id=3, dividend_id=4),
    ]


def test_build_graph_indexes_relations_by_id_and_unit() -> None:
    graph = build_graph(_chain())

    assert len(graph) == 3
    assert graph.by_id[20].pair == (2, 3)
    assert graph.unit_ids == frozenset({1, 2, 3, 4})
    assert [relation.id for relation in graph.relations_for(2)] == [10, 20]
    assert graph.relations_for(99) == ()


def test_neighbours_include_relation_itself_in_graph_order() -> None:
    graph = build_graph(_chain())
    middle = graph.by_id[20]

    assert [relation.id for relation in graph.neighbours(middle)] == [10, 20, 30]
    assert [relation.id for relation in graph.neighbours(graph.by_id[10])] == [10, 20]


def test_input_order_drives_positions() -> None:
    relations = list(reversed(_chain()))
    graph = RelationGraph.build(relations)

    assert [graph.position(relation) for relation in relations] == [0, 1, 2]
    assert [relation.id for relation in graph.relations_for(3)] == [30, 20]


def test_reciprocal_relations_are_independent() -> None:
    graph = build_graph(
        [
            Relation(id=1, divisor_id=1, dividend_id=2),
            Relation(id=2, divisor_id=2, dividend_id=1),
        ]
    )

    assert len(graph) == 2


def test_duplicate_relation_id_is_rejected() -> None:
    with pytest.raises(ConstructionError, match="Duplicate relation id 1"):
        build_graph(
            [
                Relation(id=1, divisor_id=1, dividend_id=2),
                Relation(id=1, divisor_id=2, dividend_id=3),
            ]
        )


def test_duplicate_pair_is_rejected() -> None:
    with pytest.raises(ConstructionError):
        build_graph(
            [
                Relation(id=1, divisor_id=1, dividend_id=2),
                Relation(id=2, divisor_id=1, dividend_id=2),
            ]
        )


def test_self_loop_touches_unit_once() -> None:
    graph = build_graph([Relation(id=5, divisor_id=7, dividend_id=7)])

    assert [relation.id for relation in graph.relations_for(7)] == [5]
