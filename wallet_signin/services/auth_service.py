import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from web3 import Web3

from ..config import Settings
from ..exceptions import ConfigurationError, InvalidToken, MalformedSignature, SignatureMismatch
from ..results import AuthErrorKind, Err, Ok, Result
from ..token_store import ExpiringKeyStore
from . import signature_service
from .nonce_service import NonceIssuer, NonceTokenCodec, build_signin_message
from .session_service import SessionInfo, SessionIssuer, SessionTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NonceGrant:
    nonce_token: str
    message: str


@dataclass(frozen=True)
class SignIn:
    address: str
    token: str
    claims: Dict[str, Any]
    cookie: str


class AuthService:
    """
    Runs the wallet sign-in protocol.

    Every public method returns Ok(...) or Err(AuthErrorKind); failures are
    values, not exceptions, so the HTTP layer only has to map kinds to
    status codes.
    """

    def __init__(
        self,
        settings: Settings,
        clock: Callable[[], float] = time.time,
        consumed_nonces: Optional[ExpiringKeyStore] = None,
        revoked_sessions: Optional[ExpiringKeyStore] = None,
    ):
        self.settings = settings
        self.codec = NonceTokenCodec(settings, clock=clock)
        self.nonce_issuer = NonceIssuer(settings, self.codec, clock=clock)
        self.session_issuer = SessionIssuer(settings, clock=clock)
        self.transport = SessionTransport(
            settings,
            self.session_issuer,
            revoked=revoked_sessions if revoked_sessions is not None else ExpiringKeyStore("revoked-sessions", clock=clock),
        )
        self.consumed_nonces = consumed_nonces if consumed_nonces is not None else ExpiringKeyStore("consumed-nonces", clock=clock)

    # --- Nonce issuance ---
    def issue_nonce(self, origin: str, address: Optional[str] = None) -> Result[NonceGrant]:
        try:
            nonce_token, message = self.nonce_issuer.issue(origin, address)
        except ConfigurationError as e:
            logger.error(f"Nonce issuance failed due to configuration: {e}")
            return Err(AuthErrorKind.INTERNAL_ERROR)
        except Exception as e:
            logger.error(f"Unexpected error during nonce issuance: {e}", exc_info=True)
            return Err(AuthErrorKind.INTERNAL_ERROR)
        return Ok(NonceGrant(nonce_token=nonce_token, message=message))

    # --- Verification ---
    def _reject(self, kind: AuthErrorKind, reason: str) -> Err:
        logger.warning(f"Sign-in rejected: {reason}")
        return Err(kind)

    def complete_sign_in(self, origin: str, address: Any, signature: Any, nonce_token: Any) -> Result[SignIn]:
        try:
            return self._complete_sign_in(origin, address, signature, nonce_token)
        except Exception as e:
            logger.error(f"Unexpected error during sign-in verification: {e}", exc_info=True)
            return Err(AuthErrorKind.INTERNAL_ERROR)

    def _complete_sign_in(self, origin: str, address: Any, signature: Any, nonce_token: Any) -> Result[SignIn]:
        if not self.settings.jwt_secret:
            logger.error("Missing JWT_SECRET configuration; cannot verify sign-in.")
            return Err(AuthErrorKind.INTERNAL_ERROR)

        # 1. Inputs
        if not all(isinstance(v, str) and v for v in (address, signature, nonce_token)):
            return self._reject(AuthErrorKind.BAD_REQUEST, "missing address, signature or nonceToken")
        if not Web3.is_address(address.lower()):
            return self._reject(AuthErrorKind.INVALID_ADDRESS, f"malformed address {address!r}")

        # 2. Nonce token
        try:
            challenge = self.codec.decode(nonce_token)
        except InvalidToken as e:
            return self._reject(AuthErrorKind.INVALID_OR_EXPIRED_NONCE, f"nonce token rejected ({type(e).__name__}: {e})")

        # 3. Address binding
        if challenge.address and challenge.address.lower() != address.lower():
            return self._reject(
                AuthErrorKind.ADDRESS_BINDING_MISMATCH,
                f"nonce bound to {challenge.address}, claimed {address.lower()}",
            )

        # 4. Message the wallet should have signed
        message = build_signin_message(origin, challenge.nonce, self.settings.nonce_ttl_seconds)

        # 5. Signature
        try:
            signature_service.verify_signature(message, signature, address)
        except MalformedSignature:
            return self._reject(AuthErrorKind.MALFORMED_SIGNATURE, f"unparseable signature for {address.lower()}")
        except SignatureMismatch as e:
            return self._reject(AuthErrorKind.SIGNATURE_VERIFICATION_FAILED, str(e))

        # 6. Single use
        if self.settings.nonce_single_use:
            expires_at = challenge.issued_at + self.settings.nonce_ttl_seconds
            if not self.consumed_nonces.add(challenge.nonce, expires_at):
                return self._reject(AuthErrorKind.INVALID_OR_EXPIRED_NONCE, f"nonce already used: {challenge.nonce}")

        # 7. Session
        subject = address.lower()
        token = self.session_issuer.mint(subject)
        claims = self.session_issuer.decode(token)
        logger.info(f"Sign-in succeeded for address: {subject}")
        return Ok(SignIn(address=subject, token=token, claims=claims, cookie=self.transport.attach(token)))

    # --- Session introspection / logout ---
    def whoami(self, cookie_header: Optional[str]) -> Result[SessionInfo]:
        return self.transport.whoami(cookie_header)

    def logout(self, cookie_header: Optional[str]) -> str:
        """Revokes the presented session, if any, and returns the clearing Set-Cookie value."""
        token = self.transport.read(cookie_header)
        if token:
            self.transport.revoke(token)
        return self.transport.clear()
