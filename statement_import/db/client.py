"""Engine and session helpers for the accounts database.

The URL comes from ``--database-url`` when a CLI command passes one, otherwise
from ``DATABASE_URL``. One engine is built per process and reused; call
:func:`reset_engine` to drop it (tests do this between cases).

Usage
-----
from statement_import.db.client import session_scope

with session_scope() as s:
    list_accounts(s)
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def resolve_database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "no accounts database configured; set DATABASE_URL or pass --database-url"
        )
    return url


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process-wide engine, building it on first call.

    Asking for a different URL once an engine exists is an error.
    """

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = resolve_database_url(database_url)
    if _ENGINE is not None:
        if url != _DB_URL:
            raise RuntimeError(
                f"accounts database already bound to {_DB_URL!r}; "
                f"call reset_engine() before switching to {url!r}"
            )
        return _ENGINE

    _ENGINE = create_engine(url, pool_pre_ping=True)
    _SESSION_MAKER = sessionmaker(bind=_ENGINE, expire_on_commit=False, class_=Session)
    _DB_URL = url
    return _ENGINE


def reset_engine() -> None:
    """Dispose the shared engine so the next call rebuilds it."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
    _DB_URL = None


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session inside one transaction on the accounts database.

    ``sessionmaker.begin()`` commits when the block exits normally and rolls
    back when it raises; the session is closed either way.
    """

    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None
    with _SESSION_MAKER.begin() as session:
        yield session


def create_schema(engine: Engine) -> None:
    """Create the ``accounts`` table if it does not exist."""

    Base.metadata.create_all(bind=engine)


__all__ = [
    "create_schema",
    "get_engine",
    "reset_engine",
    "resolve_database_url",
    "session_scope",
]
