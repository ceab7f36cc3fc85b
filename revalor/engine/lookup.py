"""Resolve the value of a relation on a date against a relation store."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Literal

from revalor.exceptions import InvalidIndexValue, MissingIndexValue
from revalor.models import IndexValue, Relation

if TYPE_CHECKING:  # pragma: no cover - type checker helper
    from revalor.db.base_backend import RelationStore

Interpolation = Literal["error", "last", "next", "average", "closest"]
Extrapolation = Literal["error", "closest"]

_INTERPOLATIONS = {"error", "last", "next", "average", "closest"}
_EXTRAPOLATIONS = {"error", "closest"}


@dataclass(frozen=True, slots=True)
class LookupPolicy:
    """What to do when a relation has no value on the exact date.

    ``interpolation`` applies when values exist both before and after the
    date, ``extrapolation`` when they exist on one side only. The default
    ``"error"`` for both raises :class:`MissingIndexValue`.
    """

    interpolation: Interpolation = "error"
    extrapolation: Extrapolation = "error"

    def __post_init__(self) -> None:
        if self.interpolation not in _INTERPOLATIONS:
            raise ValueError(
                "interpolation must be one of: " + ", ".join(sorted(_INTERPOLATIONS))
            )
        if self.extrapolation not in _EXTRAPOLATIONS:
            raise ValueError(
                "extrapolation must be one of: " + ", ".join(sorted(_EXTRAPOLATIONS))
            )

    @property
    def is_strict(self) -> bool:
        return self.interpolation == "error" and self.extrapolation == "error"


STRICT = LookupPolicy()


class ValueLookup:
    """Date-specific value reads with cadence normalisation and a missing-data policy."""

    def __init__(self, store: "RelationStore", policy: LookupPolicy | None = None) -> None:
        self.store = store
        self.policy = policy or STRICT

    def value(self, relation: Relation, on: date) -> float:
        key = relation.cadence.normalise(on)
        raw = self.store.get_value(relation.id, key)
        if raw is None:
            raw = self._fill_gap(relation, key, on)
        return _checked(relation, on, raw)

    def _fill_gap(self, relation: Relation, key: date, on: date) -> float:
        if self.policy.is_strict:
            raise MissingIndexValue(relation, on)
        before, after = self.store.get_neighbours(relation.id, key)
        if before is not None and after is not None:
            return self._interpolate(relation, on, key, before, after)
        available = before or after
        if available is not None and self.policy.extrapolation == "closest":
            return available.value
        raise MissingIndexValue(relation, on)

    def _interpolate(
        self,
        relation: Relation,
        on: date,
        key: date,
        before: IndexValue,
        after: IndexValue,
    ) -> float:
        mode = self.policy.interpolation
        if mode == "last":
            return before.value
        if mode == "next":
            return after.value
        if mode == "average":
            return (before.value + after.value) / 2
        if mode == "closest":
            if (after.value_date - key) < (key - before.value_date):
                return after.value
            return before.value
        raise MissingIndexValue(relation, on)


def _checked(relation: Relation, on: date, value: float) -> float:
    value = float(value)
    if value == 0 or not math.isfinite(value):
        raise InvalidIndexValue(relation, on, value)
    return value


__all__ = ["LookupPolicy", "STRICT", "ValueLookup"]
