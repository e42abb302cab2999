from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ridebattle.core.config import Settings, get_settings
from ridebattle.models import key_value as key_value_models  # noqa: F401 ensure registration
from ridebattle.models.base import Base

_ENGINE: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def init_engine(settings: Settings | None = None) -> sessionmaker[Session]:
    global _ENGINE, _SessionLocal
    settings = settings or get_settings()
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is not configured")

    connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
    _ENGINE = create_engine(settings.database_url, future=True, connect_args=connect_args)
    # Single-table schema, created on startup.
    Base.metadata.create_all(_ENGINE)
    _SessionLocal = sessionmaker(bind=_ENGINE, expire_on_commit=False, class_=Session)
    return _SessionLocal


@contextmanager
def session_scope(factory: sessionmaker[Session] | None = None) -> Iterator[Session]:
    if factory is None:
        if _SessionLocal is None:
            init_engine()
        factory = _SessionLocal
    assert factory is not None
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
