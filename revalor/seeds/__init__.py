"""Database seeding utilities for :mod:`revalor`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

__all__ = ["seed_from_csv"]

if TYPE_CHECKING:  # pragma: no cover - import only for static analyzers
    from revalor.seeds.populate_csv import seed_from_csv as seed_from_csv


def __getattr__(name: str) -> Any:
    """Lazily expose seed helpers to avoid import-time side effects."""

    if name == "seed_from_csv":
        from revalor.seeds.populate_csv import seed_from_csv as _seed

        return _seed
    raise AttributeError(f"module 'revalor.seeds' has no attribute {name}")
