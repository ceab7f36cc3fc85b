"""CLI entry point for seeding a relation store from CSV files."""

from __future__ import annotations

from revalor.seeds.populate_csv import main

if __name__ == "__main__":  # pragma: no cover - thin wrapper
    main()
