import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, create_engine, func
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.schema import CreateTable

from userfeed.config import Settings

logger = logging.getLogger(__name__)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("email", String(100)),
    Column("avatar", String(255), nullable=True),
    Column("created_at", DateTime, server_default=func.now()),
)


def _is_memory_sqlite(url) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def build_engine(settings: Settings) -> Engine:
    url = make_url(settings.database_url)
    engine_kwargs: dict = {"pool_pre_ping": True}

    if url.get_backend_name() == "sqlite":
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    if _is_memory_sqlite(url):
        # every checkout must see the same in-memory database
        engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update(
            poolclass=QueuePool,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )

    engine = create_engine(url, **engine_kwargs)
    logger.info("db.engine backend=%s pool=%s", url.get_backend_name(), type(engine.pool).__name__)
    return engine


def ensure_users_table(engine: Engine) -> None:
    """Create the ``users`` table if it is missing. Safe to call repeatedly and concurrently."""
    with engine.begin() as conn:
        conn.execute(CreateTable(users, if_not_exists=True))
    logger.info("db.schema ready table=users")


@contextmanager
def connection_scope(engine: Engine) -> Iterator[Connection]:
    """Check a connection out of the pool and always hand it back."""
    conn = engine.connect()
    try:
        yield conn
    finally:
        conn.close()


def dispose_engine(engine: Engine | None) -> None:
    if engine is not None:
        engine.dispose()
