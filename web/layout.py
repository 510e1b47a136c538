"""HTML page layouts built from escaped markup fragments."""
from __future__ import annotations

from typing import Optional, Union

from markupsafe import Markup, escape

APP_NAME = "WebApp"

Fragment = Union[Markup, str]


def tag(name: str, /, *children: Fragment, **attrs: Optional[str]) -> Markup:
    """Build ``<name attrs>children</name>``. Text children and attribute values are escaped.

    A trailing underscore in an attribute name is dropped (``class_`` ->
    ``class``) and other underscores become dashes (``hx_get`` -> ``hx-get``).
    """
    rendered = Markup("").join(
        Markup(' {}="{}"').format(k.rstrip("_").replace("_", "-"), v)
        for k, v in attrs.items()
        if v is not None
    )
    inner = Markup("").join(escape(c) for c in children)
    return Markup("<{0}{1}>{2}</{0}>").format(Markup(name), rendered, inner)


def void_tag(name: str, /, **attrs: Optional[str]) -> Markup:
    rendered = Markup("").join(
        Markup(' {}="{}"').format(k.rstrip("_").replace("_", "-"), v)
        for k, v in attrs.items()
        if v is not None
    )
    return Markup("<{}{}>").format(Markup(name), rendered)


class AppLayout:
    """Full page: title, stylesheet and a body filled through ``page_body``."""

    def __init__(self, page_title: Optional[str] = None):
        self.page_title = page_title
        self._body: list[Markup] = []

    def page_body(self, *fragments: Fragment) -> AppLayout:
        self._body.extend(escape(f) for f in fragments)
        return self

    def render(self) -> str:
        prefix = f"{self.page_title} - " if self.page_title is not None else ""
        head = tag("head", tag("title", f"{prefix}{APP_NAME}"), void_tag("link", rel="stylesheet", href="/app.css"))
        body = tag("body", *self._body)
        return "<!DOCTYPE html>\n" + str(tag("html", head, body))


class FragmentLayout:
    """Bare body, for partial page updates."""

    def __init__(self):
        self._fragment: list[Markup] = []

    def fragment(self, *fragments: Fragment) -> FragmentLayout:
        self._fragment.extend(escape(f) for f in fragments)
        return self

    def render(self) -> str:
        return str(tag("html", tag("body", *self._fragment)))
