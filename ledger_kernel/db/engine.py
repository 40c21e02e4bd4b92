"""
Module: ledger_kernel.db.engine
Responsibility: Own the process-wide engine and session factory used by the
    notification journal, and the commit-or-rollback scope that every
    journal batch is written in.
Architecture position: Kernel > DB.  May import from db/base.py.  Imports
    models/ only inside create_tables so the journal table is registered.

Invariants enforced:
    - At most one engine is live; re-initializing disposes the old one.
    - An in-memory SQLite journal lives on a single shared connection
      (StaticPool); otherwise sessions would each see an empty database.

Failure modes:
    - RuntimeError from any accessor used before init_engine_from_url().
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Journal database not initialized; call init_engine_from_url() first."


def _is_in_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Bind the journal to ``database_url``.

    ``sqlite://`` gives a shared in-memory journal (tests), a file URL such
    as ``sqlite:///journal.db`` a persistent one. Server URLs are passed
    through with connection pre-pinging.
    """
    global _engine, _session_factory

    reset_engine()
    url = make_url(database_url)
    in_memory = _is_in_memory_sqlite(url)

    if in_memory:
        _engine = create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        _engine = create_engine(url, echo=echo, pool_pre_ping=True)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "journal_engine_initialized",
        extra={"dialect": url.get_backend_name(), "in_memory": in_memory},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _session_factory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope(
    factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    Yield a session that is committed on success and rolled back on error.

    ``factory`` overrides the module-level factory, which lets a
    ``JournalSink`` write to a database other than the default one.
    """
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("journal_transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401  (registers the journal table)

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop the journal table. Test teardown only."""
    from ledger_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
