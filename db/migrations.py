"""Versioned schema migrations, applied once each at startup."""
import logging
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    text,
)
from sqlalchemy.schema import CreateTable

from db.base import engine

logger = logging.getLogger("webapp.db")

# Table definitions frozen at the version that introduced them. Later
# migrations must not edit these; add a new migration instead.
_v1 = MetaData()
_user_t_v1 = Table(
    "user_t",
    _v1,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=True),
    Column("tos_accepted", Boolean, nullable=False, default=False),
    Column("password_hash", LargeBinary, nullable=False),
)

_history = MetaData()
schema_history = Table(
    "schema_history",
    _history,
    Column("version", Integer, primary_key=True, autoincrement=False),
    Column("description", String(200), nullable=False),
    Column("installed_on", DateTime(timezone=True), nullable=False),
)

# (version, description, statements) in apply order
MIGRATIONS = [
    (1, "create user_t", [CreateTable(_user_t_v1)]),
]


async def applied_versions(conn) -> set[int]:
    result = await conn.execute(text("SELECT version FROM schema_history"))
    return {row[0] for row in result}


async def run_migrations(conn) -> list[int]:
    """Apply pending migrations in version order. Returns the versions applied."""
    await conn.run_sync(_history.create_all)
    done = await applied_versions(conn)
    applied = []
    for version, description, statements in sorted(MIGRATIONS, key=lambda m: m[0]):
        if version in done:
            continue
        logger.info("Applying migration V%d: %s", version, description)
        for stmt in statements:
            await conn.execute(text(stmt) if isinstance(stmt, str) else stmt)
        await conn.execute(
            schema_history.insert().values(
                version=version,
                description=description,
                installed_on=datetime.now(timezone.utc),
            )
        )
        applied.append(version)
    return applied


async def init_db() -> None:
    """Bring the schema up to date. All pending migrations share one transaction."""
    async with engine.begin() as conn:
        await run_migrations(conn)
