"""Tests for session scopes, savepoints, migrations and user queries."""
import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from db.base import engine
from db.migrations import MIGRATIONS, init_db
from db.support import (
    db_session,
    db_transaction,
    map_from_row,
    savepoint,
    with_db_session,
    with_db_transaction,
    with_savepoint,
)
from db.users import User, create_user, get_user, list_users

_INSERT = text(
    "INSERT INTO user_t (email, name, password_hash, tos_accepted) "
    "VALUES (:email, :name, :hash, :tos)"
)


async def _insert(session, email: str, name: str = "n") -> None:
    await session.execute(_INSERT, {"email": email, "name": name, "hash": b"x", "tos": False})


async def _count(session, email: str) -> int:
    result = await session.execute(text("SELECT count(*) FROM user_t WHERE email = :e"), {"e": email})
    return result.scalar_one()


async def _committed_count(email: str) -> int:
    async with db_session() as session:
        return await _count(session, email)


@pytest.mark.asyncio
async def test_migrations_apply_once():
    await init_db()
    await init_db()
    async with engine.connect() as conn:
        result = await conn.execute(text("SELECT version, description FROM schema_history ORDER BY version"))
        rows = [tuple(r) for r in result]
    assert rows == [(v, d) for v, d, _ in MIGRATIONS]


@pytest.mark.asyncio
async def test_create_user_returns_distinct_ids(db_tx):
    a = await create_user(db_tx, "a@example.com", "August", "1234")
    b = await create_user(db_tx, "b@example.com", "August", "1234")
    assert a != b


@pytest.mark.asyncio
async def test_get_user(db_tx):
    user_id = await create_user(db_tx, "get@example.com", "Getter", "1234", tos_accepted=True)
    assert await get_user(db_tx, -9000) is None
    user = await get_user(db_tx, user_id)
    assert user == User(id=user_id, email="get@example.com", tos_accepted=True, name="Getter")


@pytest.mark.asyncio
async def test_list_users(db_tx):
    before = await list_users(db_tx)
    a = await create_user(db_tx, "list-a@example.com", "A", "1234")
    b = await create_user(db_tx, "list-b@example.com", None, "1234")
    users = await list_users(db_tx)
    assert len(users) - len(before) == 2
    assert {a, b} <= {u.id for u in users}
    assert not hasattr(users[0], "password_hash")


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected_by_storage(db_tx):
    await create_user(db_tx, "dupe@example.com", "One", "1234")
    with pytest.raises(IntegrityError):
        async with savepoint(db_tx):
            await create_user(db_tx, "dupe@example.com", "Two", "1234")
    assert await _count(db_tx, "dupe@example.com") == 1


@pytest.mark.asyncio
async def test_map_from_row(db_tx):
    await _insert(db_tx, "row@example.com", "Row")
    result = await db_tx.execute(text("SELECT name, email FROM user_t WHERE email = 'row@example.com'"))
    assert map_from_row(result.one()) == {"name": "Row", "email": "row@example.com"}


@pytest.mark.asyncio
async def test_savepoint_rollback_keeps_sibling_work(db_tx):
    async def insert_b():
        await _insert(db_tx, "sibling-b@example.com")

    async def insert_a_then_fail():
        await _insert(db_tx, "failed-a@example.com")
        raise RuntimeError("boom")

    await with_savepoint(db_tx, insert_b)
    with pytest.raises(RuntimeError, match="boom"):
        await with_savepoint(db_tx, insert_a_then_fail)

    assert await _count(db_tx, "failed-a@example.com") == 0
    assert await _count(db_tx, "sibling-b@example.com") == 1


@pytest.mark.asyncio
async def test_outer_rollback_discards_released_savepoint(unique_email):
    with pytest.raises(RuntimeError):
        async with db_transaction() as session:
            async with savepoint(session):
                await _insert(session, unique_email)
            assert await _count(session, unique_email) == 1
            raise RuntimeError("abort outer")
    assert await _committed_count(unique_email) == 0


@pytest.mark.asyncio
async def test_with_savepoint_returns_body_result(db_tx):
    async def body():
        return 42

    assert await with_savepoint(db_tx, body) == 42


@pytest.mark.asyncio
async def test_transaction_commits_on_return(unique_email):
    async def body(session):
        await _insert(session, unique_email)
        return "done"

    assert await with_db_transaction(body) == "done"
    assert await _committed_count(unique_email) == 1


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_exception(unique_email):
    async def body(session):
        await _insert(session, unique_email)
        raise ValueError("nope")

    with pytest.raises(ValueError):
        await with_db_transaction(body)
    assert await _committed_count(unique_email) == 0


@pytest.mark.asyncio
async def test_session_commits_on_normal_exit(unique_email):
    async def body(session):
        await _insert(session, unique_email)

    await with_db_session(body)
    assert await _committed_count(unique_email) == 1


@pytest.mark.asyncio
async def test_session_keeps_work_done_before_exception(unique_email):
    with pytest.raises(KeyError):
        async with db_session() as session:
            await _insert(session, unique_email)
            raise KeyError("x")
    assert await _committed_count(unique_email) == 1


@pytest.mark.asyncio
async def test_session_raises_original_error_when_commit_after_fault_fails(committed_user):
    _, email, _ = committed_user
    with pytest.raises(IntegrityError):
        async with db_session() as session:
            await create_user(session, email, "Dupe", "1234")
