import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from jose import jwt
from siwe import generate_nonce

from ..config import Settings
from ..exceptions import ConfigurationError, InvalidToken
from ..jwt_tokens import decode_signed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NonceChallenge:
    nonce: str
    issued_at: int
    address: Optional[str] = None  # lowercased when bound


def build_signin_message(origin: str, nonce: str, ttl_seconds: int) -> str:
    """The exact text the wallet signs. Issuance and verification must agree byte for byte."""
    return f"Sign-in to {origin}\n\nNonce: {nonce}\nExpires-in: {ttl_seconds}s"


class NonceTokenCodec:
    """Encodes a NonceChallenge as a self-expiring JWT signed with the server secret."""

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time):
        self.settings = settings
        self._clock = clock

    def _secret(self) -> str:
        if not self.settings.jwt_secret:
            raise ConfigurationError("JWT_SECRET is not configured")
        return self.settings.jwt_secret

    def encode(self, challenge: NonceChallenge) -> str:
        claims = {
            "nonce": challenge.nonce,
            "iat": challenge.issued_at,
            "exp": challenge.issued_at + self.settings.nonce_ttl_seconds,
        }
        if challenge.address:
            claims["address"] = challenge.address
        return jwt.encode(claims, self._secret(), algorithm=self.settings.jwt_algorithm)

    def decode(self, token: str) -> NonceChallenge:
        """
        Verifies and unpacks a nonce token.

        Raises:
            ExpiredToken: the token is past its expiry.
            InvalidToken: bad signature, malformed token, or unusable payload.
            ConfigurationError: no signing secret is configured.
        """
        secret = self._secret()
        payload = decode_signed(token, secret, self.settings.jwt_algorithm, self._clock())

        nonce = payload.get("nonce")
        issued_at = payload.get("iat")
        address = payload.get("address")
        if not isinstance(nonce, str) or not nonce:
            raise InvalidToken("nonce token payload missing 'nonce'")
        if not isinstance(issued_at, int):
            raise InvalidToken("nonce token payload missing 'iat'")
        if address is not None and not isinstance(address, str):
            raise InvalidToken("nonce token 'address' claim must be a string")
        return NonceChallenge(nonce=nonce, issued_at=issued_at, address=address or None)


class NonceIssuer:
    """Mints challenges and the message the client must sign. Writes no state."""

    def __init__(self, settings: Settings, codec: NonceTokenCodec, clock: Callable[[], float] = time.time):
        self.settings = settings
        self.codec = codec
        self._clock = clock

    def issue(self, origin: str, address: Optional[str] = None) -> Tuple[str, str]:
        """Returns (nonce_token, message). An address, if given, is bound into the token."""
        challenge = NonceChallenge(
            nonce=generate_nonce(),
            issued_at=int(self._clock()),
            address=address.lower() if address else None,
        )
        token = self.codec.encode(challenge)
        message = build_signin_message(origin, challenge.nonce, self.settings.nonce_ttl_seconds)
        logger.info(f"Issued nonce for origin {origin} (bound address: {challenge.address or 'none'})")
        return token, message
