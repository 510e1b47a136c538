"""Database base, engine and session setup."""
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

import config


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def _database_url(cfg: config.WebappConfig):
    url = make_url(cfg.db_url)
    if cfg.db_user:
        url = url.set(username=cfg.db_user)
    if cfg.db_password:
        url = url.set(password=cfg.db_password)
    return url


engine = create_async_engine(
    _database_url(config.settings),
    echo=False,
)

if engine.dialect.name == "sqlite":
    # The sqlite driver opens its own transactions lazily, which breaks
    # SAVEPOINT. Let SQLAlchemy emit BEGIN instead.
    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")


async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)
