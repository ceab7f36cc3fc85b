"""Relation-graph path engine: graph, path index and conversion."""

from __future__ import annotations

from revalor.engine.converter import ConversionEngine
from revalor.engine.graph import RelationGraph, build_graph
from revalor.engine.lookup import LookupPolicy, ValueLookup
from revalor.engine.path_index import PathIndex, PathIndexLimits, build_path_index

__all__ = [
    "ConversionEngine",
    "LookupPolicy",
    "PathIndex",
    "PathIndexLimits",
    "RelationGraph",
    "ValueLookup",
    "build_graph",
    "build_path_index",
]
