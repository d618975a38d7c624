import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from jose import jwt
from starlette.requests import cookie_parser

from ..config import Settings
from ..exceptions import ConfigurationError, ExpiredToken, InvalidToken
from ..jwt_tokens import decode_signed
from ..results import AuthErrorKind, Err, Ok, Result
from ..token_store import ExpiringKeyStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionInfo:
    address: str
    token: str
    claims: Dict[str, Any]


class SessionIssuer:
    """Mints and verifies session JWTs carrying {sub, iat, exp}."""

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time):
        self.settings = settings
        self._clock = clock

    def _secret(self) -> str:
        if not self.settings.jwt_secret:
            raise ConfigurationError("JWT_SECRET is not configured")
        return self.settings.jwt_secret

    def mint(self, address: str) -> str:
        issued_at = int(self._clock())
        claims = {
            "sub": address.lower(),
            "iat": issued_at,
            "exp": issued_at + self.settings.session_ttl_seconds,
        }
        return jwt.encode(claims, self._secret(), algorithm=self.settings.jwt_algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        secret = self._secret()
        claims = decode_signed(token, secret, self.settings.jwt_algorithm, self._clock())
        if not isinstance(claims.get("sub"), str) or not claims["sub"]:
            raise InvalidToken("session token missing 'sub'")
        return claims


def _token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionTransport:
    """Carries session tokens in an HTTP-only cookie and tracks logged-out tokens."""

    def __init__(self, settings: Settings, issuer: SessionIssuer, revoked: Optional[ExpiringKeyStore] = None):
        self.settings = settings
        self.issuer = issuer
        self.revoked = revoked if revoked is not None else ExpiringKeyStore("revoked-sessions")

    def _cookie(self, value: str, max_age: int) -> str:
        cookie = f"{self.settings.session_cookie_name}={value}; HttpOnly; Path=/; Max-Age={max_age}; SameSite=Lax"
        if self.settings.session_cookie_secure:
            cookie += "; Secure"
        return cookie

    def attach(self, token: str) -> str:
        """Set-Cookie value delivering token; Max-Age mirrors the session TTL."""
        return self._cookie(token, self.settings.session_ttl_seconds)

    def clear(self) -> str:
        """Set-Cookie value that expires the session cookie immediately."""
        return self._cookie("", 0)

    def read(self, cookie_header: Optional[str]) -> Optional[str]:
        if not cookie_header:
            return None
        return cookie_parser(cookie_header).get(self.settings.session_cookie_name) or None

    def revoke(self, token: str) -> bool:
        """
        Denylists a still-valid token until its natural expiry.
        Returns False when the token is already unusable (nothing to revoke).
        """
        try:
            claims = self.issuer.decode(token)
        except (InvalidToken, ConfigurationError):
            return False
        self.revoked.add(_token_digest(token), float(claims["exp"]))
        logger.info(f"Session revoked for address: {claims['sub']}")
        return True

    def is_revoked(self, token: str) -> bool:
        return self.revoked.contains(_token_digest(token))

    def introspect(self, token: Optional[str]) -> Result[SessionInfo]:
        if not token:
            return Err(AuthErrorKind.UNAUTHENTICATED)
        try:
            claims = self.issuer.decode(token)
        except ExpiredToken:
            logger.info("Session token expired")
            return Err(AuthErrorKind.UNAUTHENTICATED)
        except InvalidToken as e:
            logger.warning(f"Rejected session token: {e}")
            return Err(AuthErrorKind.UNAUTHENTICATED)
        except ConfigurationError:
            logger.error("Cannot verify session token: JWT_SECRET is not configured.")
            return Err(AuthErrorKind.UNAUTHENTICATED)
        if self.is_revoked(token):
            logger.info(f"Rejected revoked session token for address: {claims['sub']}")
            return Err(AuthErrorKind.UNAUTHENTICATED)
        return Ok(SessionInfo(address=claims["sub"], token=token, claims=claims))

    def whoami(self, cookie_header: Optional[str]) -> Result[SessionInfo]:
        """Resolves the session cookie in a raw Cookie header. Never raises."""
        return self.introspect(self.read(cookie_header))
