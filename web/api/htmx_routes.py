"""HTMX demo: Jinja2 pages plus HTML fragments swapped in by htmx."""
from dataclasses import dataclass
from datetime import datetime, time

from fastapi import APIRouter

from web.dispatch import web_response
from web.layout import FragmentLayout, tag
from web.response import HtmlWebResponse, TemplateWebResponse, TextWebResponse

router = APIRouter(prefix="/htmx", tags=["htmx"])


@dataclass(frozen=True)
class ListItem:
    id: int
    time: time


def _now() -> time:
    return datetime.now().time()


@router.get("")
@web_response
async def index():
    return TemplateWebResponse(
        "index",
        {"list_items": [ListItem(item_id, _now()) for item_id in range(1, 101)]},
    )


@router.get("/click-me")
@web_response
async def click_me():
    return TemplateWebResponse("click-me")


@router.get("/get-error")
@web_response
async def get_error():
    return TextWebResponse("error", status_code=500)


@router.get("/list-item/{item_id}")
@web_response
async def list_item(item_id: int):
    return HtmlWebResponse(
        FragmentLayout().fragment(
            tag(
                "ol",
                tag(
                    "li",
                    f"List item {item_id} updated at {_now()}",
                    id=f"listItem{item_id}",
                    hx_get=f"/htmx/list-item/{item_id}",
                    hx_swap="outerHTML",
                    hx_select="li",
                ),
            )
        )
    )


@router.get("/models")
@web_response
async def models(make: str):
    return HtmlWebResponse(
        FragmentLayout().fragment(
            tag("select", *(tag("option", f"{make}{n}", value=f"{make}{n}") for n in range(1, 4)))
        )
    )
