"""Mongo store tests that monkeypatch pymongo primitives."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List

import pytest

from revalor.db import mongo_backend as mongo_module
from revalor.models import Cadence, IndexValue, Relation, Unit


def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for field, condition in query.items():
        value = doc.get(field)
        if isinstance(condition, dict):
            if "$gte" in condition and not value >= condition["$gte"]:
                return False
            if "$lte" in condition and not value <= condition["$lte"]:
                return False
        elif value != condition:
            return False
    return True


class _DummyCursor:
    def __init__(self, docs: List[Dict[str, Any]]) -> None:
        self._docs = docs

    def sort(self, field: str, direction: int) -> List[Dict[str, Any]]:
        reverse = direction == -1
        return sorted(self._docs, key=lambda doc: doc[field], reverse=reverse)


class _DummyBulkResult:
    def __init__(self, upserted_count: int) -> None:
        self.upserted_count = upserted_count


class _DummyUpdateOne:
    def __init__(
        self, filter: Dict[str, Any], update: Dict[str, Dict[str, Any]], *, upsert: bool
    ) -> None:
        assert upsert is True
        self.filter = filter
        self.update = update


class _DummyCollection:
    def __init__(self) -> None:
        self.docs: Dict[tuple, Dict[str, Any]] = {}
        self.indexes: list[tuple[tuple[tuple[str, int], ...], bool]] = []

    def __bool__(self) -> bool:  # pragma: no cover - behavioural parity with pymongo
        raise NotImplementedError("Collection truthiness is undefined")

    def create_index(self, fields: list[tuple[str, int]], unique: bool) -> None:
        self.indexes.append((tuple(fields), unique))

    def bulk_write(self, operations: list[_DummyUpdateOne], ordered: bool) -> _DummyBulkResult:
        assert ordered is False
        upserted = 0
        for op in operations:
            key = tuple(sorted(op.filter.items()))
            if key not in self.docs:
                upserted += 1
            self.docs[key] = dict(op.update["$set"])
        return _DummyBulkResult(upserted)

    def find(self, query: Dict[str, Any]) -> _DummyCursor:
        return _DummyCursor([doc for doc in self.docs.values() if _matches(doc, query)])

    def find_one(
        self, query: Dict[str, Any], sort: list[tuple[str, int]] | None = None
    ) -> Dict[str, Any] | None:
        docs = [doc for doc in self.docs.values() if _matches(doc, query)]
        if sort:
            field, direction = sort[0]
            docs.sort(key=lambda doc: doc[field], reverse=direction == -1)
        return docs[0] if docs else None


class _DummyDatabase(dict):
    def __getitem__(self, name: str) -> _DummyCollection:  # type: ignore[override]
        if name not in self:
            self[name] = _DummyCollection()
        return dict.__getitem__(self, name)


class _DummyClient:
    def __init__(self, url: str) -> None:
        self.url = url
        self.admin = self
        self.closed = False
        self.databases: Dict[str, _DummyDatabase] = {}

    def __getitem__(self, name: str) -> _DummyDatabase:
        return self.databases.setdefault(name, _DummyDatabase())

    def get_default_database(self) -> _DummyDatabase:
        return self.__getitem__("default")

    def command(self, name: str) -> None:
        assert name == "ping"

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def patch_mongo_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(mongo_module, "MongoClient", _DummyClient)
    monkeypatch.setattr(mongo_module, "PyMongoError", RuntimeError)
    monkeypatch.setattr(mongo_module, "UpdateOne", _DummyUpdateOne)


def _seeded_store() -> mongo_module.MongoRelationStore:
    store = mongo_module.MongoRelationStore("mongodb://example.com/", database="revalor")
    store.ensure_schema()
    store.insert_units([Unit(2, "USD", "US$"), Unit(1, "ARS", "$")])
    store.insert_relations(
        [Relation(id=1, divisor_id=1, dividend_id=2, cadence=Cadence.MONTHLY, source="BCRA")]
    )
    return store


def test_mongo_store_roundtrip() -> None:
    store = _seeded_store()

    result = store.insert_values(
        [IndexValue(1, date(2024, 1, 1), 810.0), IndexValue(1, date(2024, 2, 1), 830.0)]
    )
    assert result.inserted == 2
    again = store.insert_values([IndexValue(1, date(2024, 1, 1), 811.0)])
    assert (again.inserted, again.updated) == (0, 1)

    assert [unit.id for unit in store.list_units()] == [1, 2]
    relation = store.list_relations()[0]
    assert relation.cadence is Cadence.MONTHLY
    assert relation.source == "BCRA"

    rows = store.fetch_values(1, start=date(2024, 1, 1), end=date(2024, 1, 31))
    assert [(row.value_date, row.value) for row in rows] == [(date(2024, 1, 1), 811.0)]
    assert store.get_value(1, date(2024, 2, 1)) == 830.0
    assert store.get_value(1, date(2024, 3, 1)) is None

    store.close()


def test_mongo_store_neighbours() -> None:
    store = _seeded_store()
    store.insert_values(
        [IndexValue(1, date(2024, 1, 1), 810.0), IndexValue(1, date(2024, 3, 1), 850.0)]
    )

    before, after = store.get_neighbours(1, date(2024, 2, 1))
    assert before is not None and before.value_date == date(2024, 1, 1)
    assert after is not None and after.value == 850.0


def test_mongo_store_creates_unique_indexes() -> None:
    store = _seeded_store()

    relations = store._relations
    assert ((("divisor_id", 1), ("dividend_id", 1)), True) in relations.indexes
    assert ((("relation_id", 1), ("value_date", 1)), True) in store._values.indexes


def test_mongo_store_uses_default_database_when_not_named() -> None:
    store = mongo_module.MongoRelationStore("mongodb://example.com/revalor")

    assert store._client.databases.keys() == {"default"}


def test_mongo_store_requires_pymongo(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(mongo_module, "MongoClient", None)

    with pytest.raises(ModuleNotFoundError):
        mongo_module.MongoRelationStore("mongodb://example.com/revalor")
