import os
import logging
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

logger = logging.getLogger(__name__)

_TRUTHY_VALUES = {"1", "true", "yes", "on"}

DEFAULT_NONCE_TTL_SECONDS = 120
DEFAULT_SESSION_TTL_SECONDS = 3600


class Settings(BaseModel):
    """Runtime configuration handed to every component at construction."""

    model_config = ConfigDict(frozen=True)

    jwt_secret: Optional[str] = Field(None, description="HMAC secret used to sign nonce and session tokens.")
    jwt_algorithm: str = "HS256"
    nonce_ttl_seconds: int = Field(DEFAULT_NONCE_TTL_SECONDS, gt=0)
    session_ttl_seconds: int = Field(DEFAULT_SESSION_TTL_SECONDS, gt=0)
    session_cookie_name: str = "token"
    session_cookie_secure: bool = True
    nonce_single_use: bool = True
    cors_origins: List[str] = ["http://localhost:3000"]
    log_level: str = "INFO"


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} value {raw!r}. Defaulting to {default}.")
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, got {value}. Defaulting to {default}.")
        return default
    return value


def _read_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUTHY_VALUES


def get_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Builds Settings from the process environment (or the given mapping)."""
    env = os.environ if env is None else env

    origins = [o.strip() for o in env.get("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

    settings = Settings(
        jwt_secret=env.get("JWT_SECRET") or None,
        jwt_algorithm=env.get("JWT_ALGORITHM", "HS256"),
        nonce_ttl_seconds=_read_int(env, "NONCE_TOKEN_TTL_SECONDS", DEFAULT_NONCE_TTL_SECONDS),
        session_ttl_seconds=_read_int(env, "AUTH_JWT_EXPIRES_IN_SECONDS", DEFAULT_SESSION_TTL_SECONDS),
        session_cookie_name=env.get("SESSION_COOKIE_NAME") or "token",
        session_cookie_secure=_read_bool(env, "SESSION_COOKIE_SECURE", True),
        nonce_single_use=_read_bool(env, "NONCE_SINGLE_USE", True),
        cors_origins=origins,
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )

    # Basic validation
    if not settings.jwt_secret:
        logger.warning("Warning: JWT_SECRET not set. Nonce and session tokens cannot be issued or verified.")
    return settings
