from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from contextlib import contextmanager
from typing import Generator, Optional
import logging

from phrasecoach.config import get_settings

logger = logging.getLogger(__name__)

# SQLAlchemy declarative base for models
Base = declarative_base()

SessionLocal = sessionmaker(autoflush=False, autocommit=False, expire_on_commit=False)

_engine: Optional[Engine] = None


def configure_engine(url: str, **engine_kwargs) -> Engine:
    """Create the engine for ``url`` and bind the session factory to it."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    engine_kwargs.setdefault("pool_pre_ping", True)
    engine_kwargs.setdefault("echo", get_settings().database.echo)
    _engine = create_engine(url, future=True, **engine_kwargs)
    SessionLocal.configure(bind=_engine)
    logger.info(f"Database engine configured for dialect '{_engine.dialect.name}'")
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        return configure_engine(get_settings().database.url)
    return _engine


def init_db() -> None:
    """Create missing tables."""
    from phrasecoach import models  # noqa: F401  registers mappers

    Base.metadata.create_all(bind=get_engine())


@contextmanager
def db_session():
    get_engine()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency for database sessions."""
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
