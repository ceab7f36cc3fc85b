"""Convert an amount between units and dates, optionally revalorized."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Sequence

from revalor import Revalor
from revalor.engine.lookup import LookupPolicy
from revalor.exceptions import RevalorError
from revalor.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = ["parse_args", "main"]


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("amount", type=float, help="Amount expressed in the source unit")
    parser.add_argument("--from", dest="from_unit", required=True, help="Source unit id, name or symbol")
    parser.add_argument("--from-date", dest="from_date", required=True, help="Source date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="to_unit", required=True, help="Target unit id, name or symbol")
    parser.add_argument("--to-date", dest="to_date", required=True, help="Target date (YYYY-MM-DD)")
    parser.add_argument("--reference", dest="reference_unit", help="Unit used to revalorize the amount")
    parser.add_argument("--db-url", dest="db_url", help="Database URL; defaults to REVALOR_DB_URL or bundled SQLite")
    parser.add_argument(
        "--interpolation",
        default="error",
        choices=("error", "last", "next", "average", "closest"),
        help="How to fill a date missing between two known values",
    )
    parser.add_argument(
        "--extrapolation",
        default="error",
        choices=("error", "closest"),
        help="How to fill a date outside the known values",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    client = Revalor(
        args.db_url,
        lookup=LookupPolicy(interpolation=args.interpolation, extrapolation=args.extrapolation),
    )
    try:
        client.build_index()
        result = client.convert(
            args.amount,
            args.from_unit,
            args.from_date,
            args.to_unit,
            args.to_date,
            reference_unit=args.reference_unit,
        )
    except (RevalorError, ValueError) as exc:
        LOGGER.error("Conversion failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()
    print(json.dumps(result.as_payload(), indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
