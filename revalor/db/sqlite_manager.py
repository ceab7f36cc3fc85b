"""SQLAlchemy persistence for the bundled SQLite database."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Sequence, cast

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from revalor.db import DEFAULT_SQLITE_DB_PATH
from revalor.db.base_backend import PersistenceResult
from revalor.models import Cadence, IndexValue, Relation, Unit
from revalor.utils.logger import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class _Unit(Base):
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False, unique=True)
    symbol = Column(String, nullable=True)


class _Relation(Base):
    __tablename__ = "relations"
    __table_args__ = (UniqueConstraint("divisor_id", "dividend_id", name="uq_relation_pair"),)

    id = Column(Integer, primary_key=True, autoincrement=False)
    divisor_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False)
    dividend_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False)
    cadence = Column(String, nullable=False, default=Cadence.DAILY.value)
    source = Column(String, nullable=True)


class _IndexValue(Base):
    __tablename__ = "index_values"

    relation_id = Column(
        Integer, ForeignKey("relations.id", ondelete="CASCADE"), primary_key=True
    )
    value_date = Column(Date, primary_key=True)
    value = Column(Float, nullable=False)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


def _to_unit(model: _Unit) -> Unit:
    return Unit(
        id=cast(int, model.id),
        name=cast(str, model.name),
        symbol=cast("str | None", model.symbol),
    )


def _to_relation(model: _Relation) -> Relation:
    return Relation(
        id=cast(int, model.id),
        divisor_id=cast(int, model.divisor_id),
        dividend_id=cast(int, model.dividend_id),
        cadence=Cadence(cast(str, model.cadence)),
        source=cast("str | None", model.source),
    )


def _to_value(model: _IndexValue) -> IndexValue:
    return IndexValue(
        relation_id=cast(int, model.relation_id),
        value_date=cast(date, model.value_date),
        value=cast(float, model.value),
    )


class SQLiteManager:
    """Owns the engine/session factory for one SQLite file."""

    def __init__(self, db_path: str | Path = DEFAULT_SQLITE_DB_PATH) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        self.engine: Engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(self.engine)
        self._SessionFactory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False, future=True
        )
        LOGGER.debug("Opened SQLite relation store at %s", self.db_path)

    def insert_units(self, units: Sequence[Unit]) -> PersistenceResult:
        result = PersistenceResult()
        with self._SessionFactory() as session:
            for unit in units:
                existing = session.get(_Unit, unit.id)
                if existing is None:
                    session.add(_Unit(id=unit.id, name=unit.name, symbol=unit.symbol))
                    result.inserted += 1
                else:
                    setattr(existing, "name", unit.name)
                    setattr(existing, "symbol", unit.symbol)
                    result.updated += 1
            session.commit()
        return result

    def insert_relations(self, relations: Sequence[Relation]) -> PersistenceResult:
        result = PersistenceResult()
        with self._SessionFactory() as session:
            for relation in relations:
                existing = session.get(_Relation, relation.id)
                if existing is None:
                    session.add(
                        _Relation(
                            id=relation.id,
                            divisor_id=relation.divisor_id,
                            dividend_id=relation.dividend_id,
                            cadence=relation.cadence.value,
                            source=relation.source,
                        )
                    )
                    result.inserted += 1
                else:
                    setattr(existing, "divisor_id", relation.divisor_id)
                    setattr(existing, "dividend_id", relation.dividend_id)
                    setattr(existing, "cadence", relation.cadence.value)
                    setattr(existing, "source", relation.source)
                    result.updated += 1
            session.commit()
        return result

    def insert_values(self, values: Sequence[IndexValue]) -> PersistenceResult:
        result = PersistenceResult()
        with self._SessionFactory() as session:
            for row in values:
                pk = {"relation_id": row.relation_id, "value_date": row.value_date}
                existing = session.get(_IndexValue, pk)
                if existing is None:
                    session.add(
                        _IndexValue(
                            relation_id=row.relation_id,
                            value_date=row.value_date,
                            value=row.value,
                        )
                    )
                    result.inserted += 1
                else:
                    setattr(existing, "value", row.value)
                    result.updated += 1
            session.commit()
        LOGGER.info(
            "Inserted %s values, updated %s values (total %s)",
            result.inserted,
            result.updated,
            result.total,
        )
        return result

    def list_units(self) -> list[Unit]:
        with self._SessionFactory() as session:
            rows = session.execute(select(_Unit).order_by(_Unit.id)).scalars()
            return [_to_unit(cast(_Unit, row)) for row in rows]

    def list_relations(self) -> list[Relation]:
        with self._SessionFactory() as session:
            rows = session.execute(select(_Relation).order_by(_Relation.id)).scalars()
            return [_to_relation(cast(_Relation, row)) for row in rows]

    def fetch_values(
        self,
        relation_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[IndexValue]:
        with self._SessionFactory() as session:
            stmt = select(_IndexValue).order_by(_IndexValue.value_date, _IndexValue.relation_id)
            if relation_id is not None:
                stmt = stmt.where(_IndexValue.relation_id == relation_id)
            if start is not None:
                stmt = stmt.where(_IndexValue.value_date >= start)
            if end is not None:
                stmt = stmt.where(_IndexValue.value_date <= end)
            return [_to_value(cast(_IndexValue, row)) for row in session.execute(stmt).scalars()]

    def get_value(self, relation_id: int, on: date) -> float | None:
        with self._SessionFactory() as session:
            model = session.get(_IndexValue, {"relation_id": relation_id, "value_date": on})
            return None if model is None else cast(float, model.value)

    def get_neighbours(
        self, relation_id: int, on: date
    ) -> tuple[IndexValue | None, IndexValue | None]:
        with self._SessionFactory() as session:
            base = select(_IndexValue).where(_IndexValue.relation_id == relation_id)
            before = session.execute(
                base.where(_IndexValue.value_date <= on)
                .order_by(_IndexValue.value_date.desc())
                .limit(1)
            ).scalar_one_or_none()
            after = session.execute(
                base.where(_IndexValue.value_date >= on)
                .order_by(_IndexValue.value_date.asc())
                .limit(1)
            ).scalar_one_or_none()
            return (
                None if before is None else _to_value(cast(_IndexValue, before)),
                None if after is None else _to_value(cast(_IndexValue, after)),
            )

    def close(self) -> None:  # pragma: no cover - trivial
        self.engine.dispose()

    def __enter__(self) -> "SQLiteManager":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()


__all__ = ["Base", "PersistenceResult", "SQLiteManager"]
