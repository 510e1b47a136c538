"""Login, logout and the routes behind the session cookie."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import RedirectResponse

from db.support import db_session
from db.users import get_user
from web.auth import LoginRequired, authenticate_user, require_session
from web.dispatch import web_response
from web.layout import AppLayout, tag, void_tag
from web.response import HtmlWebResponse
from web.session import UserSession, session_cookie

logger = logging.getLogger("webapp.auth")

router = APIRouter(tags=["session"])


def _login_form() -> AppLayout:
    return AppLayout("Log in").page_body(
        tag(
            "form",
            tag("p", tag("label", "E-mail"), void_tag("input", type="text", name="username")),
            tag("p", tag("label", "Password"), void_tag("input", type="password", name="password")),
            tag("button", "Log in", type="submit"),
            method="post",
            action="/login",
        )
    )


@router.get("/login")
@web_response
async def login_form():
    return HtmlWebResponse(_login_form())


@router.post("/login")
async def login(
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
):
    """Check credentials; on success set the session cookie and go to /secret."""
    if not username or not password:
        logger.debug("Rejected login form with missing fields")
        return RedirectResponse("/login", status_code=302)

    async with db_session() as session:
        user_id = await authenticate_user(session, username, password)
    if user_id is None:
        logger.debug("Failed login for %s", username)
        return RedirectResponse("/login", status_code=302)

    response = RedirectResponse("/secret", status_code=302)
    session_cookie.set(response, UserSession(user_id=user_id))
    return response


@router.get("/secret")
@web_response
async def secret(user_session: UserSession = Depends(require_session)):
    async with db_session() as session:
        user = await get_user(session, user_session.user_id)
    if user is None:
        # Valid cookie for a user that no longer exists
        raise LoginRequired()
    return HtmlWebResponse(
        AppLayout(f"Welcome, {user.email}").page_body(
            tag("h1", f"Hello there, {user.email}"),
            tag("p", "You're logged in."),
            tag("p", tag("a", "Log out", href="/logout")),
        )
    )


@router.get("/logout")
async def logout(user_session: UserSession = Depends(require_session)):
    response = RedirectResponse("/login", status_code=302)
    session_cookie.clear(response)
    return response
