"""Precomputed table of every enumerable path, keyed by seed relation."""

from __future__ import annotations

import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from revalor.engine.graph import RelationGraph
from revalor.exceptions import ConstructionError
from revalor.models import Path, Relation
from revalor.utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PathIndexLimits:
    """Guards against runaway enumeration on dense graphs."""

    max_depth: int = 24
    max_paths: int = 200_000

    def __post_init__(self) -> None:
        if self.max_depth <= 0:
            raise ValueError("max_depth must be positive")
        if self.max_paths <= 0:
            raise ValueError("max_paths must be positive")


class _Enumerator:
    """Depth-first, exhaustive chain enumeration for a single graph.

    A chain's extensions depend only on the relations already used and on its
    last relation, so each ``(used, last)`` state is expanded once per seed.
    Chains a repeated state would emit carry relation sets already emitted.
    """

    def __init__(self, graph: RelationGraph, limits: PathIndexLimits) -> None:
        self.graph = graph
        self.limits = limits
        self.emitted = 0

    def chains_from(self, seed: Relation) -> list[tuple[Relation, ...]]:
        chains: list[tuple[Relation, ...]] = []
        visited: set[tuple[frozenset[tuple[int, int]], int]] = set()
        self._extend((seed,), frozenset({seed.pair}), chains, visited)
        return chains

    def _extend(
        self,
        chain: tuple[Relation, ...],
        used_pairs: frozenset[tuple[int, int]],
        out: list[tuple[Relation, ...]],
        visited: set[tuple[frozenset[tuple[int, int]], int]],
    ) -> None:
        # Pairs are unique per graph, so the used pairs identify the used relations.
        state = (used_pairs, chain[-1].id)
        if state in visited:
            return
        visited.add(state)
        if len(chain) > self.limits.max_depth:
            raise ConstructionError(
                f"Path starting at relation {chain[0].id} exceeds max_depth={self.limits.max_depth}"
            )
        candidates = [
            relation
            for relation in self.graph.neighbours(chain[-1])
            if relation.pair not in used_pairs
        ]
        if not candidates:
            self.emitted += 1
            if self.emitted > self.limits.max_paths:
                raise ConstructionError(
                    f"Path enumeration exceeded max_paths={self.limits.max_paths}"
                )
            out.append(chain)
            return
        for candidate in candidates:
            self._extend(chain + (candidate,), used_pairs | {candidate.pair}, out, visited)


def _deduplicate(chains: Iterable[tuple[Relation, ...]]) -> tuple[Path, ...]:
    seen: set[frozenset[int]] = set()
    unique: list[Path] = []
    for chain in chains:
        path = Path(chain)
        key = path.id_set
        if key in seen:
            continue
        seen.add(key)
        unique.append(path)
    return tuple(unique)


@dataclass(frozen=True, slots=True)
class PathIndex:
    """Immutable snapshot of all deduplicated paths per seed relation.

    Built once, shared read-only by every conversion. Rebuilding means
    building a new instance and swapping the reference held by the caller.
    """

    graph: RelationGraph
    paths_by_relation: Mapping[int, tuple[Path, ...]]
    limits: PathIndexLimits

    @property
    def relation_count(self) -> int:
        return len(self.graph)

    @property
    def path_count(self) -> int:
        return sum(len(paths) for paths in self.paths_by_relation.values())

    def paths_for_relation(self, relation_id: int) -> tuple[Path, ...]:
        return self.paths_by_relation.get(relation_id, ())

    def paths_for_unit(self, unit_id: int) -> tuple[Path, ...]:
        """Paths seeded by every relation touching ``unit_id``, in graph order."""

        paths: list[Path] = []
        for relation in self.graph.relations_for(unit_id):
            paths.extend(self.paths_for_relation(relation.id))
        return tuple(paths)

    def signature(self) -> dict[int, frozenset[frozenset[int]]]:
        """Per seed relation, the set of relation-id sets it reaches."""

        return {
            relation_id: frozenset(path.id_set for path in paths)
            for relation_id, paths in self.paths_by_relation.items()
        }

    def equivalent_to(self, other: "PathIndex") -> bool:
        """True when both indexes hold the same paths under id-set equality."""

        return self.signature() == other.signature()


def build_path_index(
    relations: Iterable[Relation],
    *,
    limits: PathIndexLimits | None = None,
) -> PathIndex:
    """Enumerate and deduplicate every path of the relation graph.

    Exponential in graph density; callers build it once at startup and reuse
    the snapshot. Malformed input or an enumeration past ``limits`` raises
    :class:`ConstructionError`.
    """

    limits = limits or PathIndexLimits()
    started = time.perf_counter()
    graph = RelationGraph.build(relations)
    enumerator = _Enumerator(graph, limits)
    paths_by_relation = {
        relation.id: _deduplicate(enumerator.chains_from(relation)) for relation in graph.relations
    }
    index = PathIndex(
        graph=graph,
        paths_by_relation=MappingProxyType(paths_by_relation),
        limits=limits,
    )
    LOGGER.info(
        "Built path index: %s relations, %s unique paths (%s enumerated) in %.3fs",
        index.relation_count,
        index.path_count,
        enumerator.emitted,
        time.perf_counter() - started,
    )
    return index


__all__ = ["PathIndex", "PathIndexLimits", "build_path_index"]
