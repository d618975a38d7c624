import time

import pytest
from jose import jwt

from wallet_signin.config import Settings
from wallet_signin.exceptions import ExpiredToken, InvalidToken
from wallet_signin.results import AuthErrorKind, Err, Ok
from wallet_signin.services.session_service import SessionIssuer, SessionTransport

from conftest import TEST_SECRET

ADDRESS = "0xAbCdEf0123456789abcdef0123456789ABCDEF01"


@pytest.fixture
def issuer(settings, clock):
    return SessionIssuer(settings, clock=clock)


@pytest.fixture
def transport(settings, issuer):
    return SessionTransport(settings, issuer)


class TestSessionIssuer:
    def test_mint_binds_lowercased_subject(self, issuer, clock):
        claims = issuer.decode(issuer.mint(ADDRESS))

        assert claims["sub"] == ADDRESS.lower()
        assert claims["iat"] == int(clock.now)
        assert claims["exp"] - claims["iat"] == 3600

    def test_custom_ttl(self, clock):
        issuer = SessionIssuer(Settings(jwt_secret=TEST_SECRET, session_ttl_seconds=60), clock=clock)
        claims = issuer.decode(issuer.mint(ADDRESS))
        assert claims["exp"] - claims["iat"] == 60

    def test_expired_session(self, issuer, clock):
        token = issuer.mint(ADDRESS)
        clock.advance(3601)
        with pytest.raises(ExpiredToken):
            issuer.decode(token)

    def test_session_expires_when_clock_reaches_exp(self, issuer, transport, clock):
        clock.now = float(int(clock.now))
        token = issuer.mint(ADDRESS)

        clock.advance(3599.5)
        assert isinstance(transport.whoami(f"token={token}"), Ok)

        clock.advance(0.5)
        with pytest.raises(ExpiredToken):
            issuer.decode(token)
        assert transport.whoami(f"token={token}") == Err(AuthErrorKind.UNAUTHENTICATED)

    def test_token_without_subject_is_invalid(self, issuer):
        now = int(time.time())
        token = jwt.encode({"iat": now, "exp": now + 60}, TEST_SECRET, algorithm="HS256")
        with pytest.raises(InvalidToken):
            issuer.decode(token)


class TestSessionTransport:
    def test_attach_cookie_attributes(self, transport):
        assert transport.attach("abc.def.ghi") == (
            "token=abc.def.ghi; HttpOnly; Path=/; Max-Age=3600; SameSite=Lax; Secure"
        )

    def test_clear_cookie(self, transport):
        assert transport.clear() == "token=; HttpOnly; Path=/; Max-Age=0; SameSite=Lax; Secure"

    def test_insecure_cookie_for_local_development(self, issuer):
        settings = Settings(jwt_secret=TEST_SECRET, session_cookie_secure=False, session_cookie_name="sid")
        transport = SessionTransport(settings, issuer)
        assert transport.attach("t") == "sid=t; HttpOnly; Path=/; Max-Age=3600; SameSite=Lax"

    def test_read_picks_session_cookie(self, transport):
        assert transport.read("theme=dark; token=abc.def.ghi; lang=en") == "abc.def.ghi"
        assert transport.read("theme=dark") is None
        assert transport.read("token=") is None
        assert transport.read(None) is None

    def test_whoami_with_valid_cookie(self, transport, issuer):
        token = issuer.mint(ADDRESS)

        result = transport.whoami(f"token={token}")

        assert isinstance(result, Ok)
        assert result.value.address == ADDRESS.lower()
        assert result.value.token == token
        assert result.value.claims["sub"] == ADDRESS.lower()

    def test_whoami_without_cookie(self, transport):
        assert transport.whoami(None) == Err(AuthErrorKind.UNAUTHENTICATED)
        assert transport.whoami("") == Err(AuthErrorKind.UNAUTHENTICATED)

    @pytest.mark.parametrize("token", ["garbage", "a.b.c"])
    def test_whoami_with_bad_token(self, transport, token):
        assert transport.whoami(f"token={token}") == Err(AuthErrorKind.UNAUTHENTICATED)

    def test_whoami_with_token_from_other_key(self, transport, clock):
        foreign = SessionIssuer(Settings(jwt_secret="someone-else"), clock=clock).mint(ADDRESS)
        assert transport.whoami(f"token={foreign}") == Err(AuthErrorKind.UNAUTHENTICATED)

    def test_whoami_with_expired_token(self, transport, issuer, clock):
        token = issuer.mint(ADDRESS)
        clock.advance(3601)
        assert transport.whoami(f"token={token}") == Err(AuthErrorKind.UNAUTHENTICATED)

    def test_whoami_without_secret_is_unauthenticated(self, issuer):
        token = issuer.mint(ADDRESS)
        unconfigured = Settings()
        transport = SessionTransport(unconfigured, SessionIssuer(unconfigured))
        assert transport.whoami(f"token={token}") == Err(AuthErrorKind.UNAUTHENTICATED)

    def test_revoked_token_is_rejected(self, transport, issuer):
        token = issuer.mint(ADDRESS)

        assert transport.revoke(token) is True
        assert transport.whoami(f"token={token}") == Err(AuthErrorKind.UNAUTHENTICATED)

    def test_revoke_ignores_unusable_tokens(self, transport):
        assert transport.revoke("garbage") is False
