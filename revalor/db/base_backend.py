"""Relation store interface consumed by the conversion engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Sequence

from revalor.models import IndexValue, Relation, Unit


@dataclass(slots=True)
class PersistenceResult:
    """Represents how many rows were inserted or updated in a batch."""

    inserted: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        """Return the total number of affected rows."""

        return self.inserted + self.updated


class RelationStore(ABC):
    """Read access to units, relations and their dated values.

    The engine only reads. The write helpers exist so the storage layer (seed
    scripts, tests) can populate a store through one interface.
    """

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create required tables/collections and verify connectivity."""

    @abstractmethod
    def list_units(self) -> list[Unit]:
        """Return every known unit ordered by id."""

    @abstractmethod
    def list_relations(self) -> list[Relation]:
        """Return every known relation ordered by id."""

    @abstractmethod
    def fetch_values(
        self,
        relation_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[IndexValue]:
        """Return index values constrained by relation and dates, oldest first."""

    @abstractmethod
    def insert_units(self, units: Sequence[Unit]) -> PersistenceResult:
        """Insert or update units by id."""

    @abstractmethod
    def insert_relations(self, relations: Sequence[Relation]) -> PersistenceResult:
        """Insert or update relations by id."""

    @abstractmethod
    def insert_values(self, values: Sequence[IndexValue]) -> PersistenceResult:
        """Insert or update values keyed by ``(relation_id, value_date)``."""

    def get_value(self, relation_id: int, on: date) -> float | None:
        """Return the value stored for ``relation_id`` on ``on``; ``None`` when absent."""

        rows = self.fetch_values(relation_id, on, on)
        return rows[0].value if rows else None

    def get_neighbours(
        self, relation_id: int, on: date
    ) -> tuple[IndexValue | None, IndexValue | None]:
        """Return the closest values on/before and on/after ``on``."""

        before: IndexValue | None = None
        after: IndexValue | None = None
        for row in self.fetch_values(relation_id):
            if row.value_date <= on:
                before = row
            elif after is None:
                after = row
        return before, after

    def close(self) -> None:  # pragma: no cover - optional cleanup hook
        """Backends may override to release connections/resources."""


__all__ = ["PersistenceResult", "RelationStore"]
