"""Exception handlers: turn request-level faults into responses."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from web.auth import LoginRequired
from web.dispatch import to_response
from web.response import JsonWebResponse, TextWebResponse
from web.validation import ValidationError

logger = logging.getLogger("webapp.http")


async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse("/login", status_code=302)


async def validation_error_handler(request: Request, exc: ValidationError):
    return to_response(JsonWebResponse({"error": exc.error}, status_code=400), request)


async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    # The transaction scope has already rolled back by the time we get here.
    logger.error("Storage fault on %s %s", request.method, request.url.path, exc_info=exc)
    return to_response(TextWebResponse("Internal Server Error", status_code=500), request)


def configure_error_handling(app: FastAPI) -> None:
    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
