"""Encrypted, signed session cookies.

The session lives entirely in the cookie; the server keeps no session
table. The payload is encrypted with AES-CBC under the encryption key,
then the hex ciphertext is signed with HMAC-SHA256 under an independent
signing key. Reading verifies the signature before decrypting, and any
failure reads as "no session".
"""
from __future__ import annotations

import logging
import os
from datetime import timedelta
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import Response

import config

logger = logging.getLogger("webapp.auth")

SESSION_COOKIE_NAME = "user-session"
SESSION_MAX_AGE = timedelta(days=30)


class UserSession(BaseModel):
    """Sent to the browser encrypted, so keep it well under the 4 KB cookie limit."""

    user_id: int


class SessionTransportEncrypt:
    """Encrypt-then-sign transform between a cookie value and its plaintext."""

    def __init__(self, encryption_key: bytes, signing_key: bytes):
        self._encryption_key = encryption_key
        self._signing_key = signing_key

    def _mac(self, payload: str) -> bytes:
        h = hmac.HMAC(self._signing_key, hashes.SHA256())
        h.update(payload.encode("ascii"))
        return h.finalize()

    def transform_write(self, value: str) -> str:
        iv = os.urandom(16)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        data = padder.update(value.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._encryption_key), modes.CBC(iv)).encryptor()
        encrypted = encryptor.update(data) + encryptor.finalize()
        payload = f"{iv.hex()}.{encrypted.hex()}"
        return f"{payload}.{self._mac(payload).hex()}"

    def transform_read(self, value: str) -> Optional[str]:
        try:
            iv_hex, encrypted_hex, mac_hex = value.split(".")
            h = hmac.HMAC(self._signing_key, hashes.SHA256())
            h.update(f"{iv_hex}.{encrypted_hex}".encode("ascii"))
            h.verify(bytes.fromhex(mac_hex))
            decryptor = Cipher(
                algorithms.AES(self._encryption_key), modes.CBC(bytes.fromhex(iv_hex))
            ).decryptor()
            data = decryptor.update(bytes.fromhex(encrypted_hex)) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return (unpadder.update(data) + unpadder.finalize()).decode("utf-8")
        except (InvalidSignature, ValueError, UnicodeError):
            return None


class SessionCookie:
    """Reads and writes the UserSession cookie."""

    def __init__(
        self,
        transport: SessionTransportEncrypt,
        secure: bool,
        name: str = SESSION_COOKIE_NAME,
        max_age: timedelta = SESSION_MAX_AGE,
    ):
        self.transport = transport
        self.secure = secure
        self.name = name
        self.max_age = max_age

    def set(self, response: Response, session: UserSession) -> None:
        response.set_cookie(
            self.name,
            self.transport.transform_write(session.model_dump_json()),
            max_age=int(self.max_age.total_seconds()),
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )

    def get(self, request: Request) -> Optional[UserSession]:
        raw = request.cookies.get(self.name)
        if not raw:
            return None
        plain = self.transport.transform_read(raw)
        if plain is None:
            logger.debug("Discarding session cookie that failed verification")
            return None
        try:
            return UserSession.model_validate_json(plain)
        except ValidationError:
            logger.debug("Discarding session cookie with unreadable payload")
            return None

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            self.name,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )


def create_session_cookie(cfg: config.WebappConfig) -> SessionCookie:
    return SessionCookie(
        SessionTransportEncrypt(cfg.cookie_encryption_key_bytes, cfg.cookie_signing_key_bytes),
        secure=cfg.use_secure_cookie,
    )


session_cookie = create_session_cookie(config.settings)
