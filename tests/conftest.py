import time

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.testclient import TestClient

from wallet_signin.config import Settings
from wallet_signin.main import create_app

TEST_SECRET = "test_secret_key_12345"
BASE_URL = "https://testserver"


class FakeClock:
    """Controllable stand-in for time.time; starts at the real current time."""

    def __init__(self):
        self.now = time.time()

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def settings():
    return Settings(jwt_secret=TEST_SECRET)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app):
    # https so the Secure session cookie is stored and sent back by the test client
    return TestClient(app, base_url=BASE_URL)


@pytest.fixture
def wallet():
    return Account.create()


@pytest.fixture
def other_wallet():
    return Account.create()


@pytest.fixture
def sign_message():
    """Returns a helper producing a 0x-prefixed personal_sign signature."""

    def _sign(account, message: str) -> str:
        signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
        return "0x" + bytes(signed.signature).hex()

    return _sign
