"""Data models shared by the storage layer and the conversion engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Iterator

from revalor.utils.dates import month_start, parse_date


class Cadence(str, Enum):
    """How often a relation's source publishes a value."""

    DAILY = "daily"
    MONTHLY = "monthly"

    def normalise(self, day: date) -> date:
        """Return the date under which a value for ``day`` is stored."""

        if self is Cadence.MONTHLY:
            return month_start(day)
        return day


@dataclass(frozen=True, slots=True)
class Unit:
    """Anything with a convertible value: a currency, a price index, a basket."""

    id: int
    name: str
    symbol: str | None = None


@dataclass(frozen=True, slots=True)
class Relation:
    """Directed edge between two units.

    One ``dividend`` unit corresponds to ``value`` ``divisor`` units, where the
    value is read per date from the index series rather than stored here.
    """

    id: int
    divisor_id: int
    dividend_id: int
    cadence: Cadence = Cadence.DAILY
    source: str | None = None

    @property
    def pair(self) -> tuple[int, int]:
        return (self.divisor_id, self.dividend_id)

    @property
    def units(self) -> tuple[int, int]:
        return (self.divisor_id, self.dividend_id)

    def touches(self, unit_id: int) -> bool:
        return unit_id == self.divisor_id or unit_id == self.dividend_id

    def other(self, unit_id: int) -> int | None:
        """Return the endpoint opposite ``unit_id`` or ``None`` if not touched."""

        if unit_id == self.dividend_id:
            return self.divisor_id
        if unit_id == self.divisor_id:
            return self.dividend_id
        return None


@dataclass(slots=True)
class IndexValue:
    """One observed value of a relation on a given date."""

    relation_id: int
    value_date: date
    value: float


@dataclass(frozen=True, slots=True)
class Path:
    """Ordered chain of relations where consecutive relations share a unit."""

    relations: tuple[Relation, ...] = ()

    def __iter__(self) -> Iterator[Relation]:
        return iter(self.relations)

    def __len__(self) -> int:
        return len(self.relations)

    def __bool__(self) -> bool:
        return bool(self.relations)

    @property
    def relation_ids(self) -> tuple[int, ...]:
        return tuple(relation.id for relation in self.relations)

    @property
    def id_set(self) -> frozenset[int]:
        return frozenset(self.relation_ids)

    @property
    def pairs(self) -> tuple[tuple[int, int], ...]:
        return tuple(relation.pair for relation in self.relations)

    @property
    def units(self) -> frozenset[int]:
        return frozenset(unit for relation in self.relations for unit in relation.units)

    def touches(self, unit_id: int) -> bool:
        return any(relation.touches(unit_id) for relation in self.relations)

    def trim_to(self, unit_id: int) -> "Path":
        """Cut the chain right after the first relation touching ``unit_id``.

        Exhaustive enumeration keeps extending a chain past its target, so the
        tail beyond that relation is never needed. A path that never touches the
        unit is returned unchanged.
        """

        for position, relation in enumerate(self.relations):
            if relation.touches(unit_id):
                return Path(self.relations[: position + 1])
        return self

    def route(self, start: int, end: int) -> "Path | None":
        """Return the relations actually walked from ``start`` to ``end``.

        Chains grow from either endpoint of their last relation, so a chain
        around a hub unit (``3→4, 3→5, 3→6``) carries side branches that a walk
        from 4 to 6 must skip. The walk only uses relations of this path, in
        path order, never revisits a unit and returns ``None`` when the two
        units are not connected through it.
        """

        if start == end:
            return Path()

        def _walk(unit: int, visited: frozenset[int], used: tuple[Relation, ...]):
            for relation in self.relations:
                if relation in used:
                    continue
                nxt = relation.other(unit)
                if nxt is None or nxt in visited:
                    continue
                chain = used + (relation,)
                if nxt == end:
                    return chain
                found = _walk(nxt, visited | {nxt}, chain)
                if found is not None:
                    return found
            return None

        walked = _walk(start, frozenset({start}), ())
        return Path(walked) if walked is not None else None


@dataclass(slots=True)
class ConversionRequest:
    """A single "N units of A on D1 in units of B on D2" question."""

    amount: float
    from_unit: int
    from_date: date
    to_unit: int
    to_date: date
    reference_unit: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, (int, float)):
            raise ValueError(f"amount must be a number, got {self.amount!r}")
        if not math.isfinite(self.amount):
            raise ValueError("amount must be a finite number")
        self.amount = float(self.amount)
        self.from_date = parse_date(self.from_date)
        self.to_date = parse_date(self.to_date)


@dataclass(slots=True)
class ConversionResult:
    """Outcome of a conversion: the nominal amount and, optionally, the revalorized one."""

    request: ConversionRequest
    nominal: float
    revalorized: float | None = None
    path: Path = field(default_factory=Path)
    reference_path: Path | None = None

    def as_payload(self) -> dict[str, Any]:
        """Return a JSON-friendly mapping of the result."""

        request = self.request
        return {
            "value": self.nominal,
            "revalorized": self.revalorized,
            "from": {"unit": request.from_unit, "date": request.from_date.isoformat()},
            "to": {"unit": request.to_unit, "date": request.to_date.isoformat()},
            "referenceUnit": request.reference_unit,
            "path": list(self.path.relation_ids),
        }


__all__ = [
    "Cadence",
    "ConversionRequest",
    "ConversionResult",
    "IndexValue",
    "Path",
    "Relation",
    "Unit",
]
