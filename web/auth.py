"""Authentication for the web app: credential checks and session dependencies."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.users import UserRow
from web.passwords import verify_password
from web.session import UserSession, session_cookie

logger = logging.getLogger("webapp.auth")


class LoginRequired(Exception):
    """No valid session on a protected route. Handled as a redirect to the login form."""


async def authenticate_user(session: AsyncSession, email: str, password_text: str) -> Optional[int]:
    """Return the user id when ``password_text`` matches the stored hash for ``email``, else None.

    An unknown e-mail and a wrong password both give None. The unknown
    e-mail case returns before any hash is checked, so the two are not
    indistinguishable by timing.
    """
    result = await session.execute(select(UserRow).where(UserRow.email == email))
    row = result.scalar_one_or_none()
    if row is None:
        return None
    if await verify_password(password_text, row.password_hash):
        return row.id
    return None


async def get_current_session(request: Request) -> Optional[UserSession]:
    """Return the session from the cookie, or None if missing, tampered or unreadable."""
    return session_cookie.get(request)


async def require_session(
    user_session: Optional[UserSession] = Depends(get_current_session),
) -> UserSession:
    """Require a logged-in principal. Raises LoginRequired if there is none."""
    if user_session is None:
        raise LoginRequired()
    return user_session
