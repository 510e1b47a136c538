"""Users: the user_t table, its read model and queries."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Boolean, Integer, LargeBinary, String, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from web.passwords import hash_password


class UserRow(Base):
    """Row in user_t. The schema itself is owned by db.migrations."""

    __tablename__ = "user_t"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tos_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    password_hash: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


@dataclass(frozen=True)
class User:
    """A user as seen outside authentication (no password hash)."""

    id: int
    email: str
    tos_accepted: bool
    name: Optional[str] = None

    @classmethod
    def from_row(cls, row: UserRow) -> User:
        return cls(id=row.id, email=row.email, tos_accepted=row.tos_accepted, name=row.name)


async def create_user(
    session: AsyncSession,
    email: str,
    name: Optional[str],
    password_text: str,
    tos_accepted: bool = False,
) -> int:
    """Insert a user and return its generated id.

    Email uniqueness is left to the database: a duplicate raises
    ``sqlalchemy.exc.IntegrityError``.
    """
    row = UserRow(
        email=email,
        name=name,
        tos_accepted=tos_accepted,
        password_hash=await hash_password(password_text),
    )
    session.add(row)
    await session.flush()
    return row.id


async def get_user(session: AsyncSession, user_id: int) -> Optional[User]:
    row = await session.get(UserRow, user_id)
    return User.from_row(row) if row else None


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(select(UserRow).order_by(UserRow.id))
    return [User.from_row(row) for row in result.scalars().all()]
