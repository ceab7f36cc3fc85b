"""CLI + helpers for populating (seeding) a relation store from CSV files."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from revalor.config import DatabaseConnectionInfo
from revalor.db import DEFAULT_SQLITE_DB_PATH
from revalor.db.base_backend import PersistenceResult, RelationStore
from revalor.engine.graph import build_graph
from revalor.ingestion.csv_values import (
    RELATIONS_FILENAME,
    UNITS_FILENAME,
    VALUES_FILENAME,
    IndexValueCSVParser,
)
from revalor.models import IndexValue, Relation
from revalor.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = ["seed_from_csv", "parse_args", "main"]


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "directory",
        help=f"Directory holding {UNITS_FILENAME}, {RELATIONS_FILENAME} and {VALUES_FILENAME}",
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=str(DEFAULT_SQLITE_DB_PATH),
        help="SQLite database path",
    )
    parser.add_argument(
        "--db-url",
        dest="db_url",
        help="Database URL (postgres://, mysql://, mongodb://); overrides --db",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate the CSV files without writing anything",
    )
    return parser.parse_args(argv)


def _log_result(label: str, result: PersistenceResult) -> None:
    LOGGER.info(
        "%s → inserted %s rows, updated %s rows (total %s)",
        label,
        result.inserted,
        result.updated,
        result.total,
    )


def _open_store(db_path: str | Path, db_url: str | None) -> RelationStore:
    from revalor import Revalor

    info = (
        DatabaseConnectionInfo.from_url(db_url)
        if db_url
        else DatabaseConnectionInfo.from_sqlite_path(db_path)
    )
    return Revalor(info).store


def _normalise_value_dates(
    values: Sequence[IndexValue], relations: Sequence[Relation]
) -> list[IndexValue]:
    """Key every value under the date its relation's cadence is looked up by."""

    cadences = {relation.id: relation.cadence for relation in relations}
    normalised: list[IndexValue] = []
    for item in values:
        cadence = cadences.get(item.relation_id)
        if cadence is not None:
            item = replace(item, value_date=cadence.normalise(item.value_date))
        normalised.append(item)
    return normalised


def seed_from_csv(
    directory: str | Path,
    *,
    db_path: str | Path = DEFAULT_SQLITE_DB_PATH,
    db_url: str | None = None,
    store: RelationStore | None = None,
    dry_run: bool = False,
) -> PersistenceResult:
    """Load units, relations and index values from ``directory`` into a store.

    The relation set is validated as a graph before anything is written, so
    duplicate ids or repeated divisor/dividend pairs abort the seed with
    :class:`revalor.exceptions.ConstructionError`.
    """

    folder = Path(directory)
    parser = IndexValueCSVParser()
    units = parser.parse_units(folder / UNITS_FILENAME)
    relations = parser.parse_relations(folder / RELATIONS_FILENAME)
    values = _normalise_value_dates(parser.parse_values(folder / VALUES_FILENAME), relations)
    build_graph(relations)
    LOGGER.info(
        "Parsed %s units, %s relations and %s index values from %s",
        len(units),
        len(relations),
        len(values),
        folder,
    )
    if dry_run:
        LOGGER.info("Dry-run enabled; skipping writes for %s", folder)
        return PersistenceResult()

    target = store or _open_store(db_path, db_url)
    total = PersistenceResult()
    try:
        target.ensure_schema()
        for label, result in (
            ("Units", target.insert_units(units)),
            ("Relations", target.insert_relations(relations)),
            ("Index values", target.insert_values(values)),
        ):
            _log_result(label, result)
            total.inserted += result.inserted
            total.updated += result.updated
    finally:
        if store is None:
            target.close()
    LOGGER.info(
        "Seeding finished: inserted %s rows, updated %s rows (total %s)",
        total.inserted,
        total.updated,
        total.total,
    )
    return total


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    seed_from_csv(
        args.directory,
        db_path=args.db_path,
        db_url=args.db_url,
        dry_run=args.dry_run,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
