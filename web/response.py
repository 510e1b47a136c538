"""Typed web responses.

Handlers return one of four immutable response values instead of writing
to the transport. ``web.dispatch`` turns the value into a real reply.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Protocol, Sequence, Union, runtime_checkable


@runtime_checkable
class HtmlDocument(Protocol):
    """Anything that renders itself to a complete HTML string."""

    def render(self) -> str: ...


def _freeze(headers: Mapping[str, Sequence[str]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({name: tuple(values) for name, values in headers.items()})


class _ResponseOps:
    """Header and status helpers shared by every response variant."""

    status_code: int
    headers: Mapping[str, tuple[str, ...]]

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _freeze(self.headers))

    def header(self, name: str, value: Union[str, Sequence[str]]):
        """Return a copy with ``value`` appended to the values of ``name``."""
        values = (value,) if isinstance(value, str) else tuple(value)
        headers = dict(self.headers)
        # Append under the spelling already in use for this name, if any
        key = next((k for k in headers if k.lower() == name.lower()), name)
        headers[key] = headers.get(key, ()) + values
        return dataclasses.replace(self, headers=headers)

    def with_status(self, status_code: int):
        return dataclasses.replace(self, status_code=status_code)

    def merged_headers(self) -> dict[str, list[str]]:
        """Headers keyed by lower-cased name; values of names differing only in case are merged in order."""
        merged: dict[str, list[str]] = {}
        for name, values in self.headers.items():
            merged.setdefault(name.lower(), []).extend(values)
        return merged


@dataclass(frozen=True)
class TextWebResponse(_ResponseOps):
    body: str
    status_code: int = 200
    headers: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class JsonWebResponse(_ResponseOps):
    body: Any
    status_code: int = 200
    headers: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class HtmlWebResponse(_ResponseOps):
    body: HtmlDocument
    status_code: int = 200
    headers: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class TemplateWebResponse(_ResponseOps):
    """Rendered by the Jinja2 template ``<name>.html`` with ``model`` as context."""

    name: str
    model: Mapping[str, Any] = field(default_factory=dict)
    status_code: int = 200
    headers: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


WebResponse = Union[TextWebResponse, JsonWebResponse, HtmlWebResponse, TemplateWebResponse]
