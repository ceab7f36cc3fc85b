"""PostgreSQL relation store."""

from __future__ import annotations

from revalor.db.relational_backend import RelationalStore


class PostgresStore(RelationalStore):
    """Concrete relational store for PostgreSQL engines."""

    pass


__all__ = ["PostgresStore"]
