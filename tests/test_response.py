"""Tests for the typed response values and their dispatch."""
import json

import pytest
from starlette.requests import Request

from web.dispatch import JSON_MEDIA_TYPE, to_response
from web.layout import AppLayout, FragmentLayout, tag
from web.response import (
    HtmlWebResponse,
    JsonWebResponse,
    TemplateWebResponse,
    TextWebResponse,
)


def _request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/", "headers": [], "query_string": b""})


def test_header_does_not_mutate_original():
    original = TextWebResponse("hi")
    changed = original.header("X-Test", "1")
    assert original.merged_headers() == {}
    assert dict(original.headers) == {}
    assert changed.merged_headers() == {"x-test": ["1"]}


def test_header_names_merge_case_insensitively_in_order():
    resp = TextWebResponse("hi").header("X-Test", "a").header("x-test", "b").header("X-Test", "c")
    assert resp.merged_headers() == {"x-test": ["a", "b", "c"]}
    assert list(resp.headers) == ["X-Test"]


def test_header_appends_to_existing_values():
    resp = JsonWebResponse({}).header("x-multi", "1").header("x-multi", ["2", "3"])
    assert resp.headers["x-multi"] == ("1", "2", "3")


def test_header_keeps_variant_body_and_status():
    resp = JsonWebResponse({"a": 1}, status_code=201).header("x", "y")
    assert isinstance(resp, JsonWebResponse)
    assert resp.body == {"a": 1}
    assert resp.status_code == 201


def test_headers_cannot_be_mutated_in_place():
    resp = TextWebResponse("hi").header("x", "1")
    with pytest.raises(TypeError):
        resp.headers["x"] = ("2",)


def test_with_status():
    resp = TextWebResponse("gone")
    assert resp.with_status(410).status_code == 410
    assert resp.status_code == 200


def test_dispatch_text():
    out = to_response(TextWebResponse("hello", status_code=202).header("X-A", "1"), _request())
    assert out.status_code == 202
    assert out.body == b"hello"
    assert out.headers["content-type"] == "text/plain; charset=utf-8"
    assert out.headers["x-a"] == "1"


def test_dispatch_json_writes_every_header_value():
    resp = JsonWebResponse({"foo": "bär"}).header("X-A", "1").header("x-a", "2")
    out = to_response(resp, _request())
    assert out.headers["content-type"] == JSON_MEDIA_TYPE
    assert out.headers.getlist("x-a") == ["1", "2"]
    assert json.loads(out.body.decode("utf-8")) == {"foo": "bär"}


def test_dispatch_json_serializes_dataclasses():
    from db.users import User

    out = to_response(JsonWebResponse([User(id=1, email="a@b.com", tos_accepted=True)]), _request())
    assert json.loads(out.body) == [{"id": 1, "email": "a@b.com", "tos_accepted": True, "name": None}]


def test_dispatch_html():
    out = to_response(HtmlWebResponse(AppLayout("Page").page_body(tag("h1", "Hi"))), _request())
    assert out.headers["content-type"].startswith("text/html")
    body = out.body.decode()
    assert body.startswith("<!DOCTYPE html>")
    assert "<title>Page - WebApp</title>" in body
    assert "<h1>Hi</h1>" in body


def test_dispatch_template():
    out = to_response(TemplateWebResponse("click-me", status_code=201), _request())
    assert out.status_code == 201
    assert b"You clicked me!" in out.body


def test_dispatch_rejects_unknown_values():
    with pytest.raises(TypeError):
        to_response("not a response", _request())


def test_layout_escapes_text():
    html = FragmentLayout().fragment(tag("p", "<script>", title='"x"')).render()
    assert "&lt;script&gt;" in html
    assert "<script>" not in html
    assert 'title="&#34;x&#34;"' in html


def test_tag_attribute_names():
    assert str(tag("li", "x", hx_get="/a", class_="c")) == '<li hx-get="/a" class="c">x</li>'


def test_dispatch_content_type_header_replaces_default():
    out = to_response(TextWebResponse("a,b").header("Content-Type", "text/csv; charset=utf-8"), _request())
    assert out.headers.getlist("content-type") == ["text/csv; charset=utf-8"]
