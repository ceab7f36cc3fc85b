"""Relational store integration tests using SQLite."""

from datetime import date, datetime
from pathlib import Path

from revalor.db.relational_backend import RelationalStore, _normalise_date
from revalor.models import Cadence, IndexValue, Relation, Unit


def _store(tmp_path: Path) -> RelationalStore:
    store = RelationalStore(f"sqlite:///{tmp_path / 'relational.db'}")
    store.ensure_schema()
    store.insert_units([Unit(1, "ARS", "$"), Unit(2, "USD", "US$"), Unit(3, "CPI")])
    store.insert_relations(
        [
            Relation(id=1, divisor_id=1, dividend_id=2),
            Relation(id=2, divisor_id=1, dividend_id=3, cadence=Cadence.MONTHLY, source="INDEC"),
        ]
    )
    return store


def test_relational_store_roundtrip(tmp_path: Path) -> None:
    store = _store(tmp_path)

    first_batch = [
        IndexValue(1, date(2024, 1, 1), 810.0),
        IndexValue(1, date(2024, 1, 2), 812.5),
    ]
    result = store.insert_values(first_batch)
    assert result.inserted == 2
    assert result.updated == 0

    update_result = store.insert_values([IndexValue(1, date(2024, 1, 1), 811.0)])
    assert update_result.updated == 1
    assert store.get_value(1, date(2024, 1, 1)) == 811.0
    assert store.get_value(1, date(2024, 1, 5)) is None

    jan_rows = store.fetch_values(1, date(2024, 1, 1), date(2024, 1, 31))
    assert [row.value_date for row in jan_rows] == [date(2024, 1, 1), date(2024, 1, 2)]

    store.close()


def test_relational_store_lists_graph(tmp_path: Path) -> None:
    store = _store(tmp_path)

    assert [unit.symbol for unit in store.list_units()] == ["$", "US$", None]
    relations = store.list_relations()
    assert [relation.pair for relation in relations] == [(1, 2), (1, 3)]
    assert relations[1].cadence is Cadence.MONTHLY
    assert relations[1].source == "INDEC"

    updated = store.insert_units([Unit(3, "CPI", "IPC")])
    assert (updated.inserted, updated.updated) == (0, 1)

    store.close()


def test_relational_store_neighbours(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.insert_values(
        [IndexValue(2, date(2024, 1, 1), 100.0), IndexValue(2, date(2024, 3, 1), 130.0)]
    )

    before, after = store.get_neighbours(2, date(2024, 2, 1))
    assert before is not None and before.value_date == date(2024, 1, 1)
    assert after is not None and after.value == 130.0
    assert store.get_neighbours(2, date(2023, 6, 1))[0] is None

    store.close()


def test_normalise_date_handles_multiple_input_types() -> None:
    assert _normalise_date(date(2024, 5, 1)) == date(2024, 5, 1)
    assert _normalise_date(datetime(2024, 5, 2, 15, 0)) == date(2024, 5, 2)
    assert _normalise_date("2024-05-03") == date(2024, 5, 3)
