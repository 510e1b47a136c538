"""Turn WebResponse values into Starlette responses."""
import functools
import inspect
import json
from pathlib import Path

from fastapi.encoders import jsonable_encoder
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, Response
from starlette.templating import Jinja2Templates

from web.response import (
    HtmlWebResponse,
    JsonWebResponse,
    TemplateWebResponse,
    TextWebResponse,
    WebResponse,
)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
JSON_MEDIA_TYPE = "application/json; charset=utf-8"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _json_bytes(body) -> bytes:
    return json.dumps(jsonable_encoder(body), ensure_ascii=False).encode("utf-8")


def to_response(resp: WebResponse, request: Request) -> Response:
    """Build the single Starlette response for ``resp``, headers included."""
    if isinstance(resp, TextWebResponse):
        out = PlainTextResponse(resp.body, status_code=resp.status_code)
    elif isinstance(resp, JsonWebResponse):
        out = Response(_json_bytes(resp.body), status_code=resp.status_code, media_type=JSON_MEDIA_TYPE)
    elif isinstance(resp, HtmlWebResponse):
        out = HTMLResponse(resp.body.render(), status_code=resp.status_code)
    elif isinstance(resp, TemplateWebResponse):
        out = templates.TemplateResponse(
            request,
            f"{resp.name}.html",
            dict(resp.model),
            status_code=resp.status_code,
        )
    else:
        raise TypeError(f"Not a WebResponse: {type(resp).__name__}")

    for name, values in resp.merged_headers().items():
        if name == "content-type":
            # Replaces the media type set by the response class
            out.headers[name] = values[-1]
            continue
        for value in values:
            out.headers.append(name, value)
    return out


def web_response(handler):
    """Decorate an async endpoint returning a WebResponse so it replies through ``to_response``.

    The endpoint keeps the handler's signature, so FastAPI still resolves its
    parameters and dependencies. A ``request`` parameter is added when the
    handler does not declare one.
    """
    sig = inspect.signature(handler)
    wants_request = "request" in sig.parameters

    @functools.wraps(handler)
    async def endpoint(request: Request, **kwargs):
        if wants_request:
            kwargs["request"] = request
        resp = await handler(**kwargs)
        return to_response(resp, request)

    params = list(sig.parameters.values())
    if not wants_request:
        params.insert(
            0,
            inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request),
        )
    endpoint.__signature__ = sig.replace(parameters=params, return_annotation=inspect.Signature.empty)
    return endpoint
