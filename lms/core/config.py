from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    cors_origins: tuple[str, ...] = ("http://localhost:3001",)
    certificate_issuer: str = "Compliance LMS Training System"
    certificate_validity_days: int = 0  # 0 = certificates never expire
    seed_demo_data: bool = False
    # PEM-encoded EC public key of the identity provider.  Unset: an
    # ephemeral key pair is generated and /dev/token can mint tokens.
    jwt_public_key: str | None = None
    jwt_issuer: str = "compliance-lms"
    jwt_audience: str = "compliance-lms"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def _load_public_key_pem() -> str | None:
    """PEM from JWT_PUBLIC_KEY (literal \\n allowed) or from JWT_PUBLIC_KEY_FILE."""
    inline = _getenv("JWT_PUBLIC_KEY", "")
    if inline:
        return inline.replace("\\n", "\n")
    path = _getenv("JWT_PUBLIC_KEY_FILE", "")
    if not path:
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise ValueError(f"JWT_PUBLIC_KEY_FILE cannot be read ({e})") from None


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    port = _getenv_int("PORT", 8000)

    validity_days = _getenv_int("CERTIFICATE_VALIDITY_DAYS", 0)
    if validity_days < 0:
        raise ValueError(
            f"CERTIFICATE_VALIDITY_DAYS must be >= 0 (got {validity_days})"
        )

    jwt_public_key = _load_public_key_pem()
    if app_env_raw == "prod" and jwt_public_key is None:
        raise ValueError(
            "JWT_PUBLIC_KEY or JWT_PUBLIC_KEY_FILE is required when APP_ENV=prod"
        )

    origins = tuple(
        o.strip()
        for o in _getenv("CORS_ORIGINS", "http://localhost:3001").split(",")
        if o.strip()
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        cors_origins=origins,
        certificate_issuer=_getenv(
            "CERTIFICATE_ISSUER", "Compliance LMS Training System"
        ),
        certificate_validity_days=validity_days,
        seed_demo_data=_getenv_bool("SEED_DEMO_DATA", False),
        jwt_public_key=jwt_public_key,
        jwt_issuer=_getenv("JWT_ISSUER", "compliance-lms"),
        jwt_audience=_getenv("JWT_AUDIENCE", "compliance-lms"),
    )


SETTINGS = load_settings()
