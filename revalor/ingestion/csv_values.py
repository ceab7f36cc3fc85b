"""CSV helpers for loading units, relations and index values."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, cast

from revalor.models import Cadence, IndexValue, Relation, Unit
from revalor.utils.dates import parse_date

UNITS_HEADER = ("id", "name")
RELATIONS_HEADER = ("id", "divisor_id", "dividend_id")
VALUES_HEADER = ("relation_id", "date", "value")

UNITS_FILENAME = "units.csv"
RELATIONS_FILENAME = "relations.csv"
VALUES_FILENAME = "index_values.csv"


class IndexValueCSVParser:
    """Parse the three CSV files that describe a relation graph and its series.

    ``units.csv`` needs ``id,name`` (``symbol`` optional), ``relations.csv``
    needs ``id,divisor_id,dividend_id`` (``cadence`` and ``source`` optional)
    and ``index_values.csv`` needs ``relation_id,date,value``. Dates accept
    every format :func:`revalor.utils.dates.parse_date` does. Value rows with
    an empty or non-numeric value are skipped.
    """

    def __init__(self, *, delimiter: str = ",") -> None:
        self.delimiter = delimiter

    def parse_units(self, csv_path: str | Path) -> list[Unit]:
        units: list[Unit] = []
        for row in self._rows(csv_path, UNITS_HEADER):
            raw_id = row.get("id")
            if not raw_id:
                continue
            symbol = (row.get("symbol") or "").strip() or None
            units.append(Unit(id=int(raw_id), name=cast(str, row["name"]).strip(), symbol=symbol))
        return units

    def parse_relations(self, csv_path: str | Path) -> list[Relation]:
        relations: list[Relation] = []
        for row in self._rows(csv_path, RELATIONS_HEADER):
            raw_id = row.get("id")
            if not raw_id:
                continue
            cadence_raw = (row.get("cadence") or "").strip().lower()
            relations.append(
                Relation(
                    id=int(raw_id),
                    divisor_id=int(cast(str, row["divisor_id"])),
                    dividend_id=int(cast(str, row["dividend_id"])),
                    cadence=Cadence(cadence_raw) if cadence_raw else Cadence.DAILY,
                    source=(row.get("source") or "").strip() or None,
                )
            )
        return relations

    def parse_values(self, csv_path: str | Path) -> list[IndexValue]:
        values: list[IndexValue] = []
        for row in self._rows(csv_path, VALUES_HEADER):
            relation_raw = row.get("relation_id")
            date_raw = row.get("date")
            value_raw = row.get("value")
            if not relation_raw or not date_raw or value_raw in (None, ""):
                continue
            try:
                value = float(cast(str, value_raw).replace(",", ""))
            except ValueError:
                continue
            values.append(
                IndexValue(
                    relation_id=int(relation_raw),
                    value_date=parse_date(date_raw),
                    value=value,
                )
            )
        return values

    def _rows(self, csv_path: str | Path, required: tuple[str, ...]) -> list[dict[str, str]]:
        path = Path(csv_path)
        if not path.exists():
            raise FileNotFoundError(path)
        with path.open("r", newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle, delimiter=self.delimiter)
            fieldnames = self._validate_header(reader.fieldnames, required, path)
            reader.fieldnames = fieldnames
            return [
                {key: (value or "").strip() for key, value in row.items() if key is not None}
                for row in reader
            ]

    @staticmethod
    def _validate_header(
        fieldnames: Iterable[str] | None, required: tuple[str, ...], path: Path
    ) -> list[str]:
        if not fieldnames:
            raise ValueError(f"CSV file {path.name} does not contain a header row")
        normalized = [field.strip().lower() for field in fieldnames]
        missing = [column for column in required if column not in normalized]
        if missing:
            raise ValueError(f"CSV file {path.name} is missing columns: {', '.join(missing)}")
        return normalized


__all__ = [
    "IndexValueCSVParser",
    "RELATIONS_FILENAME",
    "UNITS_FILENAME",
    "VALUES_FILENAME",
]
