"""Stand-in for a slow external service, used by /test/coroutine."""
import asyncio
import random

from fastapi import APIRouter, Request

from web.dispatch import web_response
from web.response import TextWebResponse

router = APIRouter(tags=["mock"])


@router.get("/random_number")
@web_response
async def random_number():
    num = random.randint(200, 2000)
    await asyncio.sleep(num / 1000)
    return TextWebResponse(str(num))


@router.get("/ping")
@web_response
async def ping():
    return TextWebResponse("pong")


@router.post("/reverse")
@web_response
async def reverse(request: Request):
    body = (await request.body()).decode("utf-8")
    return TextWebResponse(body[::-1])
