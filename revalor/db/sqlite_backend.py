"""SQLite relation store backed by :class:`SQLiteManager`."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Sequence

from revalor.db import DEFAULT_SQLITE_DB_PATH
from revalor.db.base_backend import PersistenceResult, RelationStore
from revalor.db.sqlite_manager import SQLiteManager
from revalor.models import IndexValue, Relation, Unit


class SQLiteRelationStore(RelationStore):
    """Relation store that reads from and writes to a local SQLite file."""

    def __init__(
        self,
        db_path: str | Path = DEFAULT_SQLITE_DB_PATH,
        *,
        manager: SQLiteManager | None = None,
    ) -> None:
        self.manager = manager or SQLiteManager(db_path)
        self.db_path = Path(self.manager.db_path)

    def ensure_schema(self) -> None:
        # ``SQLiteManager`` creates the schema in its constructor.
        return None

    def list_units(self) -> list[Unit]:
        return self.manager.list_units()

    def list_relations(self) -> list[Relation]:
        return self.manager.list_relations()

    def fetch_values(
        self,
        relation_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[IndexValue]:
        return self.manager.fetch_values(relation_id, start, end)

    def get_value(self, relation_id: int, on: date) -> float | None:
        return self.manager.get_value(relation_id, on)

    def get_neighbours(
        self, relation_id: int, on: date
    ) -> tuple[IndexValue | None, IndexValue | None]:
        return self.manager.get_neighbours(relation_id, on)

    def insert_units(self, units: Sequence[Unit]) -> PersistenceResult:
        return self.manager.insert_units(units)

    def insert_relations(self, relations: Sequence[Relation]) -> PersistenceResult:
        return self.manager.insert_relations(relations)

    def insert_values(self, values: Sequence[IndexValue]) -> PersistenceResult:
        return self.manager.insert_values(values)

    def close(self) -> None:  # pragma: no cover - trivial delegator
        self.manager.close()


__all__ = ["SQLiteRelationStore"]
