class AuthServiceError(Exception):
    """Base class for errors raised by the token and signature services."""


class ConfigurationError(AuthServiceError):
    """The server is missing configuration required to sign or verify tokens."""


class InvalidToken(AuthServiceError):
    """Token signature does not verify, or the token/payload is malformed."""


class ExpiredToken(InvalidToken):
    """Token verified but is past its expiry."""


class MalformedSignature(AuthServiceError):
    """Wallet signature could not be parsed or no address could be recovered."""


class SignatureMismatch(AuthServiceError):
    """Signature is well-formed but was produced by a different address."""

    def __init__(self, claimed: str, recovered: str):
        super().__init__(f"Recovered address {recovered} does not match claimed address {claimed}")
        self.claimed = claimed
        self.recovered = recovered
