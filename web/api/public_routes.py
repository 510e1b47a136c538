"""Public routes: plain responses, DB session scopes and transaction demos."""
import asyncio
import logging
from datetime import datetime
from typing import Optional

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text

import config
from db import testdata
from db.support import (
    db_session,
    db_transaction,
    map_from_row,
    with_db_session,
    with_db_transaction,
    with_savepoint,
)
from db.users import create_user, list_users
from web.dispatch import web_response
from web.layout import AppLayout, tag
from web.response import HtmlWebResponse, JsonWebResponse, TextWebResponse
from web.validation import validate_email, validate_password

logger = logging.getLogger("webapp")

router = APIRouter(tags=["public"])

_INSERT_USER = text(
    "INSERT INTO user_t (email, name, password_hash, tos_accepted) "
    "VALUES (:email, :name, :password_hash, :tos_accepted)"
)


async def get_http_client():
    """Client for the mock service. Tests override this dependency."""
    async with httpx.AsyncClient(base_url=config.settings.mock_service_url, timeout=10.0) as client:
        yield client


class CreateUserRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    tos_accepted: bool = False


@router.get("/")
@web_response
async def index():
    return TextWebResponse("Hello, World!").header("x-asdf", datetime.now().isoformat())


@router.get("/test/param")
@web_response
async def test_param(foo: Optional[str] = None):
    return TextWebResponse(f"The param is: {foo}")


@router.get("/test/json")
@web_response
async def test_json():
    return JsonWebResponse({"foo": "bar"}).header("x-test-header", "Just a test!")


@router.get("/test/users_raw")
@web_response
async def users_raw():
    async def body(session):
        result = await session.execute(text("SELECT name, email FROM user_t ORDER BY id"))
        return [map_from_row(row) for row in result]

    return JsonWebResponse(await with_db_session(body))


@router.get("/test/users_dto")
@web_response
async def users_dto():
    return JsonWebResponse(await with_db_session(list_users))


@router.post("/test/users")
@web_response
async def create_test_user(body: CreateUserRequest):
    """Create a user from JSON. Invalid input is a 400 with an ``error`` message."""
    email = validate_email(body.email)
    password = validate_password(body.password)
    async with db_transaction() as session:
        user_id = await create_user(session, email, body.name, password, tos_accepted=body.tos_accepted)
    return JsonWebResponse({"id": user_id}, status_code=201)


@router.get("/test/failing_tx")
@web_response
async def failing_tx():
    """Insert a user, then fail. The transaction rolls back and nothing is kept."""
    email = "bwd@example.com"
    count_query = text("SELECT count(*) AS c FROM user_t WHERE email = :email")
    async with db_transaction() as session:
        before = (await session.execute(count_query, {"email": email})).scalar_one()
        logger.debug("Number of %s users at start of transaction: %s", email, before)
        await session.execute(
            _INSERT_USER,
            {"email": email, "name": "Bwd Zvii", "password_hash": b"rereer", "tos_accepted": False},
        )
        after = (await session.execute(count_query, {"email": email})).scalar_one()
        logger.debug("Number of %s users after insert: %s", email, after)
        logger.debug("Will now cause a rollback")
        await session.execute(text("SELECT 1 FROM nonexistanttable"))
    return TextWebResponse("This text should not be returned")


@router.get("/test/partially_committed_tx")
@web_response
async def partially_committed_tx():
    """Two savepoints in one transaction; the second fails and only it is undone."""

    def insert_params(name: str) -> dict:
        return {
            "email": f"{name}@example.com",
            "name": name,
            "password_hash": b"rereer",
            "tos_accepted": False,
        }

    async def body(session):
        first_name = testdata.username()

        async def insert_first():
            await session.execute(_INSERT_USER, insert_params(first_name))

        await with_savepoint(session, insert_first)

        async def insert_then_fail():
            name = testdata.username()
            await session.execute(_INSERT_USER, insert_params(name))
            raise RuntimeError(f"some error after {name} was inserted")

        try:
            await with_savepoint(session, insert_then_fail)
        except RuntimeError as e:
            logger.debug('Caught error "%s" from savepoint', e)

        result = await session.execute(
            text("SELECT id FROM user_t WHERE name = :name"), {"name": first_name}
        )
        row = result.first()
        return map_from_row(row) if row else None

    return JsonWebResponse(await with_db_transaction(body))


@router.get("/test/html")
@web_response
async def test_html():
    return HtmlWebResponse(AppLayout("Hello, world!").page_body(tag("h1", "Hello, readers!")))


@router.get("/test/coroutine")
@web_response
async def test_coroutine(client: httpx.AsyncClient = Depends(get_http_client)):
    """Fan out to the mock service and the database concurrently."""
    random_number = asyncio.create_task(_get_text(client, "/random_number"))

    async def reverse() -> str:
        resp = await client.post("/reverse", content=await random_number)
        resp.raise_for_status()
        return resp.text

    async def query() -> dict:
        pong = await _get_text(client, "/ping")
        async with db_session() as session:
            result = await session.execute(
                text("SELECT count(*) AS c FROM user_t WHERE email != :pong"), {"pong": pong}
            )
            return map_from_row(result.one())

    reversed_number, query_result = await asyncio.gather(reverse(), query())
    return TextWebResponse(
        f"Random number: {await random_number}\n"
        f"Reversed: {reversed_number}\n"
        f"Query: {query_result}"
    )


async def _get_text(client: httpx.AsyncClient, path: str) -> str:
    resp = await client.get(path)
    resp.raise_for_status()
    return resp.text
