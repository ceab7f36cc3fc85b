"""Dict-backed relation store for embedding and tests."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

from revalor.db.base_backend import PersistenceResult, RelationStore
from revalor.models import IndexValue, Relation, Unit


class InMemoryRelationStore(RelationStore):
    """Keeps units, relations and values in plain dictionaries."""

    def __init__(
        self,
        units: Iterable[Unit] = (),
        relations: Iterable[Relation] = (),
        values: Iterable[IndexValue] = (),
    ) -> None:
        self._units: dict[int, Unit] = {}
        self._relations: dict[int, Relation] = {}
        self._values: dict[int, dict[date, float]] = {}
        self.insert_units(list(units))
        self.insert_relations(list(relations))
        self.insert_values(list(values))

    def ensure_schema(self) -> None:
        return None

    def list_units(self) -> list[Unit]:
        return [self._units[key] for key in sorted(self._units)]

    def list_relations(self) -> list[Relation]:
        return [self._relations[key] for key in sorted(self._relations)]

    def fetch_values(
        self,
        relation_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[IndexValue]:
        relation_ids = sorted(self._values) if relation_id is None else [relation_id]
        rows: list[IndexValue] = []
        for rid in relation_ids:
            for day, value in self._values.get(rid, {}).items():
                if start is not None and day < start:
                    continue
                if end is not None and day > end:
                    continue
                rows.append(IndexValue(relation_id=rid, value_date=day, value=value))
        rows.sort(key=lambda row: (row.value_date, row.relation_id))
        return rows

    def get_value(self, relation_id: int, on: date) -> float | None:
        return self._values.get(relation_id, {}).get(on)

    def insert_units(self, units: Sequence[Unit]) -> PersistenceResult:
        return _upsert(self._units, ((unit.id, unit) for unit in units))

    def insert_relations(self, relations: Sequence[Relation]) -> PersistenceResult:
        return _upsert(self._relations, ((relation.id, relation) for relation in relations))

    def insert_values(self, values: Sequence[IndexValue]) -> PersistenceResult:
        result = PersistenceResult()
        for row in values:
            series = self._values.setdefault(row.relation_id, {})
            if row.value_date in series:
                result.updated += 1
            else:
                result.inserted += 1
            series[row.value_date] = float(row.value)
        return result


def _upsert(target: dict, items: Iterable[tuple[int, object]]) -> PersistenceResult:
    result = PersistenceResult()
    for key, item in items:
        if key in target:
            result.updated += 1
        else:
            result.inserted += 1
        target[key] = item
    return result


__all__ = ["InMemoryRelationStore"]
