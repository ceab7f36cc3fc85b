"""Shared logic for SQL (Postgres/MySQL) relation stores."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Sequence

from sqlalchemy import Date, bindparam, create_engine, text
from sqlalchemy.engine import Connection, Engine

from revalor.db.base_backend import PersistenceResult, RelationStore
from revalor.models import Cadence, IndexValue, Relation, Unit
from revalor.utils.logger import get_logger

LOGGER = get_logger(__name__)

SCHEMA_SQL_UNITS = """
CREATE TABLE IF NOT EXISTS units (
    id INTEGER NOT NULL PRIMARY KEY,
    name VARCHAR(255) NOT NULL UNIQUE,
    symbol VARCHAR(64) NULL
);
"""

SCHEMA_SQL_RELATIONS = """
CREATE TABLE IF NOT EXISTS relations (
    id INTEGER NOT NULL PRIMARY KEY,
    divisor_id INTEGER NOT NULL REFERENCES units(id) ON DELETE CASCADE,
    dividend_id INTEGER NOT NULL REFERENCES units(id) ON DELETE CASCADE,
    cadence VARCHAR(16) NOT NULL DEFAULT 'daily',
    source VARCHAR(255) NULL,
    UNIQUE(divisor_id, dividend_id)
);
"""

SCHEMA_SQL_VALUES = """
CREATE TABLE IF NOT EXISTS index_values (
    relation_id INTEGER NOT NULL REFERENCES relations(id) ON DELETE CASCADE,
    value_date DATE NOT NULL,
    value NUMERIC(24, 10) NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY(relation_id, value_date)
);
"""

SELECT_UNIT_SQL = "SELECT 1 FROM units WHERE id = :id"
INSERT_UNIT_SQL = "INSERT INTO units(id, name, symbol) VALUES(:id, :name, :symbol)"
UPDATE_UNIT_SQL = "UPDATE units SET name = :name, symbol = :symbol WHERE id = :id"

SELECT_RELATION_SQL = "SELECT 1 FROM relations WHERE id = :id"
INSERT_RELATION_SQL = """
INSERT INTO relations(id, divisor_id, dividend_id, cadence, source)
VALUES(:id, :divisor_id, :dividend_id, :cadence, :source)
"""
UPDATE_RELATION_SQL = """
UPDATE relations
SET divisor_id = :divisor_id,
    dividend_id = :dividend_id,
    cadence = :cadence,
    source = :source
WHERE id = :id
"""

SELECT_VALUE_SQL = (
    "SELECT value FROM index_values WHERE relation_id = :relation_id AND value_date = :value_date"
)
INSERT_VALUE_SQL = """
INSERT INTO index_values(relation_id, value_date, value)
VALUES(:relation_id, :value_date, :value)
"""
UPDATE_VALUE_SQL = """
UPDATE index_values
SET value = :value
WHERE relation_id = :relation_id AND value_date = :value_date
"""
BEFORE_VALUE_SQL = """
SELECT relation_id, value_date, value FROM index_values
WHERE relation_id = :relation_id AND value_date <= :value_date
ORDER BY value_date DESC
LIMIT 1
"""
AFTER_VALUE_SQL = """
SELECT relation_id, value_date, value FROM index_values
WHERE relation_id = :relation_id AND value_date >= :value_date
ORDER BY value_date ASC
LIMIT 1
"""

_DATE_PARAMS = ("value_date", "start_date", "end_date")


def _sql(statement: str):
    """Build a ``text`` clause whose date parameters are bound as ``Date``."""

    clause = text(statement)
    dates = [bindparam(name, type_=Date) for name in _DATE_PARAMS if f":{name}" in statement]
    return clause.bindparams(*dates) if dates else clause


class RelationalStore(RelationStore):
    """Base class that encapsulates SQLAlchemy powered interactions."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._engine_instance: Engine | None = None

    def _get_engine(self) -> Engine:
        if self._engine_instance is None:
            self._engine_instance = create_engine(self.url, future=True)
        return self._engine_instance

    def ensure_schema(self) -> None:
        with self._get_engine().begin() as connection:
            LOGGER.info("Ensuring units/relations/index_values schema exists")
            connection.execute(text("SELECT 1"))
            connection.execute(text(SCHEMA_SQL_UNITS))
            connection.execute(text(SCHEMA_SQL_RELATIONS))
            connection.execute(text(SCHEMA_SQL_VALUES))

    def insert_units(self, units: Sequence[Unit]) -> PersistenceResult:
        rows = [{"id": unit.id, "name": unit.name, "symbol": unit.symbol} for unit in units]
        return self._upsert(rows, SELECT_UNIT_SQL, INSERT_UNIT_SQL, UPDATE_UNIT_SQL)

    def insert_relations(self, relations: Sequence[Relation]) -> PersistenceResult:
        rows = [
            {
                "id": relation.id,
                "divisor_id": relation.divisor_id,
                "dividend_id": relation.dividend_id,
                "cadence": relation.cadence.value,
                "source": relation.source,
            }
            for relation in relations
        ]
        return self._upsert(rows, SELECT_RELATION_SQL, INSERT_RELATION_SQL, UPDATE_RELATION_SQL)

    def insert_values(self, values: Sequence[IndexValue]) -> PersistenceResult:
        rows = [
            {
                "relation_id": row.relation_id,
                "value_date": row.value_date,
                "value": row.value,
            }
            for row in values
        ]
        return self._upsert(rows, SELECT_VALUE_SQL, INSERT_VALUE_SQL, UPDATE_VALUE_SQL)

    def _upsert(
        self,
        rows: Sequence[Mapping[str, Any]],
        select_sql: str,
        insert_sql: str,
        update_sql: str,
    ) -> PersistenceResult:
        result = PersistenceResult()
        if not rows:
            return result
        with self._get_engine().begin() as connection:
            for params in rows:
                if connection.execute(_sql(select_sql), params).first() is None:
                    connection.execute(_sql(insert_sql), params)
                    result.inserted += 1
                else:
                    connection.execute(_sql(update_sql), params)
                    result.updated += 1
        return result

    def list_units(self) -> list[Unit]:
        with self._get_engine().connect() as connection:
            rows = connection.execute(text("SELECT id, name, symbol FROM units ORDER BY id"))
            return [
                Unit(id=int(row.id), name=row.name, symbol=row.symbol) for row in rows
            ]

    def list_relations(self) -> list[Relation]:
        with self._get_engine().connect() as connection:
            rows = connection.execute(
                text(
                    "SELECT id, divisor_id, dividend_id, cadence, source "
                    "FROM relations ORDER BY id"
                )
            )
            return [
                Relation(
                    id=int(row.id),
                    divisor_id=int(row.divisor_id),
                    dividend_id=int(row.dividend_id),
                    cadence=Cadence(row.cadence or Cadence.DAILY.value),
                    source=row.source,
                )
                for row in rows
            ]

    def fetch_values(
        self,
        relation_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[IndexValue]:
        where_clauses: list[str] = []
        params: dict[str, object] = {}
        if relation_id is not None:
            where_clauses.append("relation_id = :relation_id")
            params["relation_id"] = relation_id
        if start is not None:
            where_clauses.append("value_date >= :start_date")
            params["start_date"] = start
        if end is not None:
            where_clauses.append("value_date <= :end_date")
            params["end_date"] = end
        query = "SELECT relation_id, value_date, value FROM index_values"
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY value_date, relation_id"
        with self._get_engine().connect() as connection:
            return [_to_value(row._mapping) for row in connection.execute(_sql(query), params)]

    def get_value(self, relation_id: int, on: date) -> float | None:
        with self._get_engine().connect() as connection:
            row = connection.execute(
                _sql(SELECT_VALUE_SQL), {"relation_id": relation_id, "value_date": on}
            ).first()
        return None if row is None else float(row.value)

    def get_neighbours(
        self, relation_id: int, on: date
    ) -> tuple[IndexValue | None, IndexValue | None]:
        params = {"relation_id": relation_id, "value_date": on}
        with self._get_engine().connect() as connection:
            before = _first_value(connection, BEFORE_VALUE_SQL, params)
            after = _first_value(connection, AFTER_VALUE_SQL, params)
        return before, after

    def close(self) -> None:  # pragma: no cover - trivial resource cleanup
        if self._engine_instance is not None:
            self._engine_instance.dispose()


def _first_value(
    connection: Connection, statement: str, params: Mapping[str, object]
) -> IndexValue | None:
    row = connection.execute(_sql(statement), params).first()
    return None if row is None else _to_value(row._mapping)


def _to_value(mapping: Mapping[str, Any]) -> IndexValue:
    return IndexValue(
        relation_id=int(mapping["relation_id"]),
        value_date=_normalise_date(mapping["value_date"]),
        value=float(mapping["value"]),
    )


def _normalise_date(value: object) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value))


__all__ = ["RelationalStore"]
