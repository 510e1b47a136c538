"""Salted bcrypt password hashing.

bcrypt is deliberately slow, so both operations run in the bounded worker
thread pool instead of on the event loop.
"""
from __future__ import annotations

import hashlib

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

BCRYPT_ROUNDS = 10

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def _prepare_password(password: str) -> str:
    """Bcrypt has a 72-byte limit. Pre-hash longer passwords with SHA256."""
    encoded = password.encode("utf-8")
    if len(encoded) > 72:
        return hashlib.sha256(encoded).hexdigest()
    return password


async def hash_password(password: str) -> bytes:
    hashed = await run_in_threadpool(pwd_context.hash, _prepare_password(password))
    return hashed.encode("ascii")


async def verify_password(plain: str, hashed: bytes) -> bool:
    """False on a mismatch, and also when ``hashed`` is not a bcrypt hash at all."""
    try:
        return await run_in_threadpool(pwd_context.verify, _prepare_password(plain), hashed.decode("ascii"))
    except ValueError:
        # passlib UnknownHashError, malformed bcrypt string or non-ascii bytes
        return False
