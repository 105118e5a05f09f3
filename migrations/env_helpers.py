"""Database URL helpers for Alembic migrations.

Kept outside env.py so they can be tested without alembic.context.
DATABASE_URL may be a URL (postgres://, postgresql://) or a libpq
key=value DSN; both become a postgresql+psycopg2 SQLAlchemy URL.
"""

from __future__ import annotations

import os

from psycopg2.extensions import parse_dsn
from sqlalchemy.engine import URL, make_url

DRIVERNAME = "postgresql+psycopg2"


def _db_password() -> str | None:
    return os.environ.get("DB_PASSWORD") or None


def _libpq_dsn_to_url(dsn: str) -> URL:
    """Convert a libpq key=value DSN to a SQLAlchemy URL.

    A host starting with "/" is a unix socket directory and is passed as
    the ?host= query argument.
    """
    tokens = parse_dsn(dsn)
    password = tokens.get("password") or _db_password()
    host = tokens.get("host", "localhost")

    if host.startswith("/"):
        return URL.create(
            DRIVERNAME,
            username=tokens.get("user"),
            password=password,
            database=tokens.get("dbname"),
            query={"host": host},
        )

    return URL.create(
        DRIVERNAME,
        username=tokens.get("user"),
        password=password,
        host=host,
        port=int(tokens.get("port", "5432")),
        database=tokens.get("dbname"),
    )


def get_database_url() -> str:
    """DATABASE_URL as a SQLAlchemy URL string (password included)."""
    raw = os.environ.get("DATABASE_URL")
    if not raw:
        raise RuntimeError("DATABASE_URL is required to run migrations")

    if "://" in raw:
        url = make_url(raw).set(drivername=DRIVERNAME)
        if not url.password and _db_password():
            url = url.set(password=_db_password())
    else:
        url = _libpq_dsn_to_url(raw)

    return url.render_as_string(hide_password=False)
