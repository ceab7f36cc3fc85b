"""MySQL relation store."""

from __future__ import annotations

from revalor.db.relational_backend import RelationalStore


class MySQLStore(RelationalStore):
    """Concrete relational store for MySQL engines."""

    pass


__all__ = ["MySQLStore"]
