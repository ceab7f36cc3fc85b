from __future__ import annotations

from datetime import date

from revalor.db.sqlite_backend import SQLiteRelationStore
from revalor.db.sqlite_manager import SQLiteManager
from revalor.models import IndexValue, Relation, Unit


def test_sqlite_store_roundtrip(tmp_path) -> None:
    store = SQLiteRelationStore(db_path=tmp_path / "sqlite_store.db")
    assert store.ensure_schema() is None

    assert store.insert_units([Unit(1, "ARS"), Unit(2, "USD")]).inserted == 2
    assert store.insert_relations([Relation(id=1, divisor_id=1, dividend_id=2)]).inserted == 1
    result = store.insert_values(
        [IndexValue(1, date(2024, 1, 1), 810.0), IndexValue(1, date(2024, 1, 3), 820.0)]
    )
    assert result.total == 2

    assert [unit.name for unit in store.list_units()] == ["ARS", "USD"]
    assert store.list_relations()[0].id == 1
    assert len(store.fetch_values()) == 2
    assert store.get_value(1, date(2024, 1, 3)) == 820.0
    before, after = store.get_neighbours(1, date(2024, 1, 2))
    assert before is not None and before.value == 810.0
    assert after is not None and after.value == 820.0

    store.close()


def test_sqlite_store_accepts_existing_manager(tmp_path) -> None:
    manager = SQLiteManager(tmp_path / "shared.db")
    store = SQLiteRelationStore(manager=manager)

    assert store.manager is manager
    assert store.db_path == manager.db_path
    store.close()
