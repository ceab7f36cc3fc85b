import tempfile
import unittest
from datetime import date
from pathlib import Path

from revalor.db.sqlite_manager import PersistenceResult, SQLiteManager
from revalor.models import Cadence, IndexValue, Relation, Unit


class SQLiteManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = Path(self.temp_dir.name) / "test.db"
        self.manager = SQLiteManager(self.db_path)
        self.manager.insert_units([Unit(1, "Argentine peso", "$"), Unit(2, "US dollar", "US$")])
        self.manager.insert_relations(
            [Relation(id=1, divisor_id=1, dividend_id=2, cadence=Cadence.DAILY, source="BCRA")]
        )

    def tearDown(self) -> None:
        self.manager.close()
        self.temp_dir.cleanup()

    def test_units_and_relations_roundtrip(self) -> None:
        units = self.manager.list_units()
        self.assertEqual([unit.name for unit in units], ["Argentine peso", "US dollar"])
        relations = self.manager.list_relations()
        self.assertEqual(len(relations), 1)
        self.assertEqual(relations[0].pair, (1, 2))
        self.assertIs(relations[0].cadence, Cadence.DAILY)
        self.assertEqual(relations[0].source, "BCRA")

        result = self.manager.insert_units([Unit(2, "US dollar", "USD")])
        self.assertEqual((result.inserted, result.updated), (0, 1))
        self.assertEqual(self.manager.list_units()[1].symbol, "USD")

    def test_insert_and_upsert_values(self) -> None:
        rows = [
            IndexValue(1, date(2024, 1, 1), 810.0),
            IndexValue(1, date(2024, 1, 2), 815.5),
        ]
        result = self.manager.insert_values(rows)
        self.assertIsInstance(result, PersistenceResult)
        self.assertEqual(result.inserted, len(rows))
        self.assertEqual(result.updated, 0)

        update_result = self.manager.insert_values([IndexValue(1, date(2024, 1, 1), 811.0)])
        self.assertEqual(update_result.inserted, 0)
        self.assertEqual(update_result.updated, 1)

        self.assertEqual(self.manager.get_value(1, date(2024, 1, 1)), 811.0)
        self.assertIsNone(self.manager.get_value(1, date(2024, 1, 3)))

    def test_fetch_values_filters_dates(self) -> None:
        self.manager.insert_values(
            [
                IndexValue(1, date(2024, 1, 1), 810.0),
                IndexValue(1, date(2024, 2, 1), 830.0),
            ]
        )

        jan_rows = self.manager.fetch_values(1, start=date(2024, 1, 1), end=date(2024, 1, 31))
        feb_rows = self.manager.fetch_values(start=date(2024, 2, 1))

        self.assertEqual(len(jan_rows), 1)
        self.assertEqual(jan_rows[0].value_date, date(2024, 1, 1))
        self.assertEqual(len(feb_rows), 1)
        self.assertEqual(feb_rows[0].value, 830.0)

    def test_neighbours_bracket_a_missing_date(self) -> None:
        self.manager.insert_values(
            [
                IndexValue(1, date(2024, 1, 1), 810.0),
                IndexValue(1, date(2024, 1, 10), 840.0),
            ]
        )

        before, after = self.manager.get_neighbours(1, date(2024, 1, 5))
        self.assertIsNotNone(before)
        self.assertIsNotNone(after)
        assert before is not None and after is not None
        self.assertEqual(before.value_date, date(2024, 1, 1))
        self.assertEqual(after.value_date, date(2024, 1, 10))

        before, after = self.manager.get_neighbours(1, date(2024, 3, 1))
        self.assertIsNone(after)


class PersistenceResultTests(unittest.TestCase):
    def test_total_property_adds_inserted_and_updated(self) -> None:
        result = PersistenceResult(inserted=3, updated=2)
        self.assertEqual(result.total, 5)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
