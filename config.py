"""Configuration for the web app."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields
from pathlib import Path

from dotenv import dotenv_values

ENV_DIR = Path(__file__).parent / "env"

_SECRETS_RE = re.compile(r"password|secret|key", re.IGNORECASE)

# Environment variable -> WebappConfig field
_KEYS = {
    "HTTP_PORT": "http_port",
    "DB_URL": "db_url",
    "DB_USER": "db_user",
    "DB_PASSWORD": "db_password",
    "USE_FILE_SYSTEM_ASSETS": "use_file_system_assets",
    "USE_SECURE_COOKIE": "use_secure_cookie",
    "COOKIE_ENCRYPTION_KEY": "cookie_encryption_key",
    "COOKIE_SIGNING_KEY": "cookie_signing_key",
    "MOCK_SERVICE_URL": "mock_service_url",
}


class ConfigError(ValueError):
    """Raised when a required setting is missing or malformed."""


def _parse_bool(name: str, value: str) -> bool:
    v = value.strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_hex_key(name: str, value: str, length: int) -> str:
    try:
        raw = bytes.fromhex(value)
    except ValueError:
        raise ConfigError(f"{name} must be hex-encoded") from None
    if len(raw) != length:
        raise ConfigError(f"{name} must decode to {length} bytes, got {len(raw)}")
    return value


@dataclass(frozen=True)
class WebappConfig:
    http_port: int
    db_url: str
    db_user: str
    db_password: str
    use_file_system_assets: bool
    use_secure_cookie: bool
    cookie_encryption_key: str
    cookie_signing_key: str
    mock_service_url: str

    @property
    def cookie_encryption_key_bytes(self) -> bytes:
        return bytes.fromhex(self.cookie_encryption_key)

    @property
    def cookie_signing_key_bytes(self) -> bytes:
        return bytes.fromhex(self.cookie_signing_key)

    def format_for_logging(self) -> str:
        """One ``name = value`` line per field, secrets cut to two characters."""
        lines = []
        for f in sorted(fields(self), key=lambda f: f.name):
            value = getattr(self, f.name)
            if _SECRETS_RE.search(f.name):
                lines.append(f"{f.name} = {str(value)[:2]}*****")
            else:
                lines.append(f"{f.name} = {value}")
        return "\n".join(lines)


def _load_values(env: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for path in (ENV_DIR / "app.env", ENV_DIR / f"app-{env}.env"):
        if path.exists():
            values.update({k: v for k, v in dotenv_values(path).items() if v is not None})
    for key in _KEYS:
        if key in os.environ:
            values[key] = os.environ[key]
    return values


def create_app_config(env: str) -> WebappConfig:
    """Build the config for ``env``: app.env, then app-<env>.env, then the process environment."""
    values = _load_values(env)
    missing = [k for k in _KEYS if k not in values]
    if missing:
        raise ConfigError(f"Missing settings for env {env!r}: {', '.join(missing)}")
    try:
        http_port = int(values["HTTP_PORT"])
    except ValueError:
        raise ConfigError(f"HTTP_PORT must be an integer, got {values['HTTP_PORT']!r}") from None
    return WebappConfig(
        http_port=http_port,
        db_url=values["DB_URL"],
        db_user=values["DB_USER"],
        db_password=values["DB_PASSWORD"],
        use_file_system_assets=_parse_bool("USE_FILE_SYSTEM_ASSETS", values["USE_FILE_SYSTEM_ASSETS"]),
        use_secure_cookie=_parse_bool("USE_SECURE_COOKIE", values["USE_SECURE_COOKIE"]),
        cookie_encryption_key=_parse_hex_key("COOKIE_ENCRYPTION_KEY", values["COOKIE_ENCRYPTION_KEY"], 16),
        cookie_signing_key=_parse_hex_key("COOKIE_SIGNING_KEY", values["COOKIE_SIGNING_KEY"], 32),
        mock_service_url=values["MOCK_SERVICE_URL"].rstrip("/"),
    )


APP_ENV = os.getenv("WEBAPP_ENV", "local")
settings = create_app_config(APP_ENV)
