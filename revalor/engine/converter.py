"""Answer conversion requests by walking precomputed relation paths."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from revalor.engine.lookup import LookupPolicy, ValueLookup
from revalor.engine.path_index import PathIndex
from revalor.exceptions import NoRouteFound
from revalor.models import ConversionRequest, ConversionResult, Path
from revalor.utils.logger import get_logger

if TYPE_CHECKING:  # pragma: no cover - type checker helper
    from revalor.db.base_backend import RelationStore

LOGGER = get_logger(__name__)


class ConversionEngine:
    """Stateless conversion over a :class:`PathIndex` snapshot and a relation store.

    Nothing is mutated, so one engine can serve concurrent calls and several
    engines can share an index.
    """

    __slots__ = ("index", "store", "lookup")

    def __init__(
        self,
        index: PathIndex,
        store: "RelationStore",
        *,
        lookup: LookupPolicy | None = None,
    ) -> None:
        self.index = index
        self.store = store
        self.lookup = ValueLookup(store, lookup)

    def select_path(self, from_unit: int, to_unit: int) -> Path:
        """Return the route from ``from_unit`` to ``to_unit``.

        Takes the first enumerated path that reaches ``to_unit``, in index
        order. Paths are not ranked by length or data completeness.
        """

        if from_unit == to_unit:
            return Path()
        for path in self.index.paths_for_unit(from_unit):
            if not path.touches(to_unit):
                continue
            route = path.trim_to(to_unit).route(from_unit, to_unit)
            if route is not None:
                return route
        raise NoRouteFound(from_unit, to_unit)

    def path_exists(self, from_unit: int, to_unit: int) -> bool:
        try:
            self.select_path(from_unit, to_unit)
        except NoRouteFound:
            return False
        return True

    def traverse(self, path: Path, amount: float, start_unit: int, on: date) -> float:
        """Carry ``amount`` of ``start_unit`` along ``path`` using values for ``on``."""

        current = start_unit
        for relation in path:
            value = self.lookup.value(relation, on)
            if relation.dividend_id == current:
                amount = amount * value
                current = relation.divisor_id
            elif relation.divisor_id == current:
                amount = amount / value
                current = relation.dividend_id
            else:
                raise ValueError(f"Relation {relation.id} does not touch unit {current}")
        return amount

    def reference_path(self, reference_unit: int, route: Path, from_unit: int, to_unit: int) -> Path:
        """Relations linking ``reference_unit`` to the units a conversion crosses.

        Prefers the first relation (graph order) between the reference unit
        and the route's unit set; otherwise falls back to the selected route
        from the reference unit to ``from_unit``.
        """

        targets = set(route.units) | {from_unit, to_unit}
        for relation in self.index.graph.relations_for(reference_unit):
            other = relation.other(reference_unit)
            if other != reference_unit and other in targets:
                return Path((relation,))
        return self.select_path(reference_unit, from_unit)

    def revalorize(
        self,
        amount: float,
        reference_path: Path,
        reference_unit: int,
        from_date: date,
        to_date: date,
    ) -> float:
        """Rescale ``amount`` by the reference unit's value at ``to_date`` over ``from_date``."""

        at_origin = self.traverse(reference_path, 1.0, reference_unit, from_date)
        at_target = self.traverse(reference_path, 1.0, reference_unit, to_date)
        return amount * at_target / at_origin

    def convert(self, request: ConversionRequest) -> ConversionResult:
        route = self.select_path(request.from_unit, request.to_unit)
        nominal = self.traverse(route, request.amount, request.from_unit, request.to_date)
        result = ConversionResult(request=request, nominal=nominal, path=route)
        if request.reference_unit is not None:
            ref_path = self.reference_path(
                request.reference_unit, route, request.from_unit, request.to_unit
            )
            revalued = self.revalorize(
                request.amount,
                ref_path,
                request.reference_unit,
                request.from_date,
                request.to_date,
            )
            result.revalorized = self.traverse(
                route, revalued, request.from_unit, request.to_date
            )
            result.reference_path = ref_path
        LOGGER.debug(
            "Converted %s of unit %s (%s) to unit %s (%s) via %s: nominal=%s revalorized=%s",
            request.amount,
            request.from_unit,
            request.from_date,
            request.to_unit,
            request.to_date,
            list(route.relation_ids),
            result.nominal,
            result.revalorized,
        )
        return result


__all__ = ["ConversionEngine"]
