"""In-memory adjacency view over the relation set."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from revalor.exceptions import ConstructionError
from revalor.models import Relation


@dataclass(frozen=True, slots=True)
class RelationGraph:
    """Relations keyed by id and by the units they touch.

    Pure data with no time dimension. Relation order is the input order and
    drives every "first match" decision taken further down the engine.
    """

    relations: tuple[Relation, ...]
    by_id: Mapping[int, Relation]
    adjacency: Mapping[int, tuple[Relation, ...]]
    _positions: Mapping[int, int]

    @classmethod
    def build(cls, relations: Iterable[Relation]) -> "RelationGraph":
        ordered = tuple(relations)
        by_id: dict[int, Relation] = {}
        pairs: dict[tuple[int, int], int] = {}
        adjacency: dict[int, list[Relation]] = {}
        for relation in ordered:
            if relation.id in by_id:
                raise ConstructionError(f"Duplicate relation id {relation.id}")
            if relation.pair in pairs:
                raise ConstructionError(
                    f"Relations {pairs[relation.pair]} and {relation.id} both link "
                    f"divisor {relation.divisor_id} to dividend {relation.dividend_id}"
                )
            by_id[relation.id] = relation
            pairs[relation.pair] = relation.id
            for unit_id in dict.fromkeys(relation.units):
                adjacency.setdefault(unit_id, []).append(relation)
        return cls(
            relations=ordered,
            by_id=MappingProxyType(by_id),
            adjacency=MappingProxyType({unit: tuple(rels) for unit, rels in adjacency.items()}),
            _positions=MappingProxyType({relation.id: pos for pos, relation in enumerate(ordered)}),
        )

    @property
    def unit_ids(self) -> frozenset[int]:
        return frozenset(self.adjacency)

    def relations_for(self, unit_id: int) -> tuple[Relation, ...]:
        """Relations touching ``unit_id`` in either direction, in graph order."""

        return self.adjacency.get(unit_id, ())

    def position(self, relation: Relation) -> int:
        return self._positions[relation.id]

    def neighbours(self, relation: Relation) -> tuple[Relation, ...]:
        """Relations sharing a unit with ``relation`` (itself included), in graph order."""

        seen: dict[int, Relation] = {}
        for unit_id in relation.units:
            for candidate in self.relations_for(unit_id):
                seen.setdefault(candidate.id, candidate)
        return tuple(sorted(seen.values(), key=self.position))

    def __len__(self) -> int:
        return len(self.relations)


def build_graph(relations: Iterable[Relation]) -> RelationGraph:
    """Build a :class:`RelationGraph`; duplicate ids or pairs raise ``ConstructionError``."""

    return RelationGraph.build(relations)


__all__ = ["RelationGraph", "build_graph"]
