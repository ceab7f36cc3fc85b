"""MongoDB relation store."""

from __future__ import annotations

from datetime import date
from typing import Any, Sequence

from revalor.db.base_backend import PersistenceResult, RelationStore
from revalor.models import Cadence, IndexValue, Relation, Unit
from revalor.utils.logger import get_logger

try:  # pragma: no cover - optional dependency
    from pymongo import MongoClient, UpdateOne
    from pymongo.collection import Collection
    from pymongo.errors import PyMongoError
except ModuleNotFoundError:  # pragma: no cover - handled dynamically
    MongoClient = None  # type: ignore[assignment]
    UpdateOne = None  # type: ignore[assignment]
    Collection = None  # type: ignore[assignment]
    PyMongoError = Exception  # type: ignore[assignment]

LOGGER = get_logger(__name__)


class MongoRelationStore(RelationStore):
    """Relation store persisting units, relations and values in MongoDB."""

    def __init__(self, url: str, *, database: str | None = None) -> None:
        if MongoClient is None:  # pragma: no cover - defensive
            raise ModuleNotFoundError("pymongo is required for MongoDB backends")
        self.url = url
        self._client = MongoClient(url)
        db = self._client.get_default_database() if database is None else self._client[database]
        if db is None:
            raise ValueError("MongoDB connection URI must include a database name")
        self._units: Collection = db["units"]
        self._relations: Collection = db["relations"]
        self._values: Collection = db["index_values"]

    def ensure_schema(self) -> None:
        try:
            LOGGER.info("Ensuring MongoDB relation collections exist")
            self._client.admin.command("ping")
            self._units.create_index([("id", 1)], unique=True)
            self._relations.create_index([("id", 1)], unique=True)
            self._relations.create_index([("divisor_id", 1), ("dividend_id", 1)], unique=True)
            self._values.create_index([("relation_id", 1), ("value_date", 1)], unique=True)
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to ensure MongoDB schema: {exc}") from exc

    def insert_units(self, units: Sequence[Unit]) -> PersistenceResult:
        docs = [{"id": unit.id, "name": unit.name, "symbol": unit.symbol} for unit in units]
        return self._bulk_upsert(self._units, docs, ("id",))

    def insert_relations(self, relations: Sequence[Relation]) -> PersistenceResult:
        docs = [
            {
                "id": relation.id,
                "divisor_id": relation.divisor_id,
                "dividend_id": relation.dividend_id,
                "cadence": relation.cadence.value,
                "source": relation.source,
            }
            for relation in relations
        ]
        return self._bulk_upsert(self._relations, docs, ("id",))

    def insert_values(self, values: Sequence[IndexValue]) -> PersistenceResult:
        docs = [
            {
                "relation_id": row.relation_id,
                "value_date": row.value_date.isoformat(),
                "value": float(row.value),
            }
            for row in values
        ]
        return self._bulk_upsert(self._values, docs, ("relation_id", "value_date"))

    def _bulk_upsert(
        self,
        collection: Collection,
        docs: list[dict[str, Any]],
        key_fields: tuple[str, ...],
    ) -> PersistenceResult:
        result = PersistenceResult()
        if not docs:
            return result
        operations = [
            UpdateOne({field: doc[field] for field in key_fields}, {"$set": doc}, upsert=True)
            for doc in docs
        ]
        try:
            outcome = collection.bulk_write(operations, ordered=False)
        except PyMongoError as exc:  # pragma: no cover - error path
            raise RuntimeError(f"Failed to write MongoDB documents: {exc}") from exc
        result.inserted = int(getattr(outcome, "upserted_count", 0) or 0)
        result.updated = len(docs) - result.inserted
        return result

    def list_units(self) -> list[Unit]:
        return [
            Unit(id=int(doc["id"]), name=doc["name"], symbol=doc.get("symbol"))
            for doc in self._units.find({}).sort("id", 1)
        ]

    def list_relations(self) -> list[Relation]:
        return [
            Relation(
                id=int(doc["id"]),
                divisor_id=int(doc["divisor_id"]),
                dividend_id=int(doc["dividend_id"]),
                cadence=Cadence(doc.get("cadence") or Cadence.DAILY.value),
                source=doc.get("source"),
            )
            for doc in self._relations.find({}).sort("id", 1)
        ]

    def fetch_values(
        self,
        relation_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[IndexValue]:
        query: dict[str, Any] = {}
        if relation_id is not None:
            query["relation_id"] = relation_id
        if start is not None or end is not None:
            range_query: dict[str, str] = {}
            if start is not None:
                range_query["$gte"] = start.isoformat()
            if end is not None:
                range_query["$lte"] = end.isoformat()
            query["value_date"] = range_query
        docs = self._values.find(query).sort("value_date", 1)
        return [_to_value(doc) for doc in docs]

    def get_value(self, relation_id: int, on: date) -> float | None:
        doc = self._values.find_one({"relation_id": relation_id, "value_date": on.isoformat()})
        return None if doc is None else float(doc["value"])

    def get_neighbours(
        self, relation_id: int, on: date
    ) -> tuple[IndexValue | None, IndexValue | None]:
        day = on.isoformat()
        before = self._values.find_one(
            {"relation_id": relation_id, "value_date": {"$lte": day}},
            sort=[("value_date", -1)],
        )
        after = self._values.find_one(
            {"relation_id": relation_id, "value_date": {"$gte": day}},
            sort=[("value_date", 1)],
        )
        return (
            None if before is None else _to_value(before),
            None if after is None else _to_value(after),
        )

    def close(self) -> None:  # pragma: no cover - trivial cleanup
        self._client.close()


def _to_value(doc: dict[str, Any]) -> IndexValue:
    return IndexValue(
        relation_id=int(doc["relation_id"]),
        value_date=date.fromisoformat(doc["value_date"]),
        value=float(doc["value"]),
    )


__all__ = ["MongoRelationStore"]
