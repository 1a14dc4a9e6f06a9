from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from . import config

_engine: Engine | None = None
_engine_url: str | None = None


def get_engine() -> Engine:
    """Return the engine for the configured database, rebuilding it if the URL changed."""

    global _engine, _engine_url
    url = config.database_url()
    if _engine is None or _engine_url != url:
        if url.startswith("sqlite:///"):
            config.data_dir().mkdir(parents=True, exist_ok=True)
        _engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
        )
        _engine_url = url
    return _engine


def init_db() -> None:
    """Create database tables if they do not exist."""

    from . import models  # noqa: F401 ensures models are registered

    SQLModel.metadata.create_all(get_engine())


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    with Session(get_engine()) as session:
        yield session


def get_session() -> Iterator[Session]:
    init_db()
    with Session(get_engine()) as session:
        yield session
