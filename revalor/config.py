"""Database connection settings for the relation store."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final, Mapping
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from revalor.db import DEFAULT_SQLITE_DB_PATH

DB_URL_ENV: Final[str] = "REVALOR_DB_URL"


class DatabaseBackend(str, Enum):
    """Storage engines a relation store can live in."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"
    MONGODB = "mongodb"

    @classmethod
    def resolve_backend_and_scheme(cls, scheme: str) -> tuple["DatabaseBackend", str]:
        """Return backend enum + canonical scheme used in connection URLs."""

        if not scheme:
            raise ValueError(f"{DB_URL_ENV} must include a scheme (e.g. mysql:// or postgres://)")
        base_scheme, _, driver = scheme.lower().partition("+")
        if base_scheme in {"postgresql", "postgres"}:
            return cls.POSTGRES, "postgresql"
        if base_scheme == "sqlite":
            return cls.SQLITE, "sqlite"
        if base_scheme == "mysql":
            # Driver hints such as ``mysql+pymysql`` select the DBAPI module.
            return cls.MYSQL, f"mysql+{driver}" if driver else "mysql"
        if base_scheme == "mongodb":
            # ``mongodb+srv`` must stay intact so pymongo resolves it via DNS.
            return cls.MONGODB, f"mongodb+{driver}" if driver else "mongodb"
        raise ValueError(
            "Unsupported database backend. Supported values are SQLite, MySQL, "
            "Postgres, and MongoDB."
        )

    @classmethod
    def from_scheme(cls, scheme: str) -> "DatabaseBackend":
        backend, _ = cls.resolve_backend_and_scheme(scheme)
        return backend


@dataclass(slots=True)
class DatabaseConnectionInfo:
    """Where the relation store lives."""

    backend: DatabaseBackend
    url: str
    name: str | None
    username: str | None = None
    password: str | None = None
    host: str | None = None
    port: int | None = None

    @classmethod
    def from_url(cls, url: str) -> "DatabaseConnectionInfo":
        """Create a connection object by parsing a database URL/DSN."""

        scheme, sep, sqlite_path = url.partition(":///")
        if sep and DatabaseBackend.from_scheme(scheme) is DatabaseBackend.SQLITE:
            # SQLite URLs carry a filesystem path that must not be re-quoted.
            if not sqlite_path:
                raise ValueError("SQLite URLs must include a database path")
            return cls(backend=DatabaseBackend.SQLITE, url=url, name=sqlite_path)

        cleaned_url, query_db_name = _extract_database_name(url)
        parsed = urlparse(cleaned_url)
        if not parsed.scheme:
            raise ValueError(f"{DB_URL_ENV} must include a scheme (e.g. mysql:// or postgres://)")
        backend, canonical_scheme = DatabaseBackend.resolve_backend_and_scheme(parsed.scheme)
        if parsed.scheme != canonical_scheme:
            parsed = parsed._replace(scheme=canonical_scheme)
            cleaned_url = urlunparse(parsed)
        name = parsed.path[1:] if parsed.path and parsed.path != "/" else None
        return cls(
            backend=backend,
            url=cleaned_url,
            name=name or query_db_name,
            username=parsed.username,
            password=parsed.password,
            host=parsed.hostname,
            port=parsed.port,
        )

    @classmethod
    def bundled_sqlite(cls) -> "DatabaseConnectionInfo":
        """Connection info pointing at the SQLite file shipped with the package."""

        return cls.from_sqlite_path(DEFAULT_SQLITE_DB_PATH)

    @classmethod
    def from_sqlite_path(cls, db_path: str | Path) -> "DatabaseConnectionInfo":
        path = Path(db_path).expanduser().resolve()
        return cls(
            backend=DatabaseBackend.SQLITE,
            url=f"sqlite:///{path.as_posix()}",
            name=str(path),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DatabaseConnectionInfo":
        """Read ``REVALOR_DB_URL``; fall back to the bundled SQLite database."""

        env = os.environ if environ is None else environ
        url = env.get(DB_URL_ENV, "").strip()
        return cls.from_url(url) if url else cls.bundled_sqlite()

    @property
    def is_sqlite(self) -> bool:
        return self.backend is DatabaseBackend.SQLITE

    @property
    def is_external(self) -> bool:
        return not self.is_sqlite


def _extract_database_name(url: str) -> tuple[str, str | None]:
    """Move a ``DATABASE_NAME`` query parameter into the URL path.

    Some DSNs carry the database as ``?DATABASE_NAME=foo``, occasionally glued
    to the previous parameter without an ``&``.
    """

    patched_url = re.sub(r"(?i)(?<![?&])DATABASE_NAME=", "&DATABASE_NAME=", url)
    parsed = urlparse(patched_url)
    remaining: list[tuple[str, str]] = []
    database_name: str | None = None
    for key, value in parse_qsl(parsed.query, keep_blank_values=True):
        if key.lower() == "database_name":
            database_name = value or database_name
            continue
        remaining.append((key, value))
    path = parsed.path
    if (not path or path == "/") and database_name:
        path = f"/{database_name}"
    cleaned = parsed._replace(query=urlencode(remaining, doseq=True), path=path)
    return urlunparse(cleaned), database_name


__all__ = ["DB_URL_ENV", "DatabaseBackend", "DatabaseConnectionInfo"]
