"""Error types raised by the conversion engine and its collaborators."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - type checker helper
    from revalor.models import Relation


class RevalorError(Exception):
    """Base class for every error revalor raises on purpose."""


class ConstructionError(RevalorError, ValueError):
    """The relation set cannot be turned into a graph or path index.

    Raised at build time only. A process that sees this error must not start
    serving conversions.
    """


class NoRouteFound(RevalorError, LookupError):
    """No precomputed path connects two units."""

    def __init__(self, from_unit: int, to_unit: int) -> None:
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(f"No conversion path found between units {from_unit} and {to_unit}")


class MissingIndexValue(RevalorError, LookupError):
    """A relation on the selected path has no value for the requested date."""

    def __init__(self, relation: "Relation", on: date) -> None:
        self.relation = relation
        self.on = on
        super().__init__(
            f"No index value for relation {relation.id} "
            f"({relation.dividend_id}/{relation.divisor_id}) on {on.isoformat()}"
        )


class InvalidIndexValue(RevalorError, ValueError):
    """A stored value cannot take part in a conversion (zero, NaN, inf)."""

    def __init__(self, relation: "Relation", on: date, value: float) -> None:
        self.relation = relation
        self.on = on
        self.value = value
        super().__init__(
            f"Index value {value!r} for relation {relation.id} on {on.isoformat()} "
            "cannot be used in a conversion"
        )


class UnknownUnitError(RevalorError, LookupError):
    """A unit reference does not match any known unit."""

    def __init__(self, reference: object) -> None:
        self.reference = reference
        super().__init__(f"Unknown unit: {reference!r}")


__all__ = [
    "ConstructionError",
    "InvalidIndexValue",
    "MissingIndexValue",
    "NoRouteFound",
    "RevalorError",
    "UnknownUnitError",
]
