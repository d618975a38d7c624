from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

from fastapi import status

T = TypeVar("T")


class AuthErrorKind(Enum):
    """Every way a sign-in request can fail, with its HTTP status and client message."""

    BAD_REQUEST = (status.HTTP_400_BAD_REQUEST, "address, signature and nonceToken required")
    INVALID_ADDRESS = (status.HTTP_400_BAD_REQUEST, "invalid address")
    INVALID_OR_EXPIRED_NONCE = (status.HTTP_400_BAD_REQUEST, "invalid or expired nonce token")
    ADDRESS_BINDING_MISMATCH = (status.HTTP_400_BAD_REQUEST, "nonce token bound to a different address")
    MALFORMED_SIGNATURE = (status.HTTP_400_BAD_REQUEST, "invalid signature format")
    SIGNATURE_VERIFICATION_FAILED = (status.HTTP_401_UNAUTHORIZED, "signature verification failed")
    UNAUTHENTICATED = (status.HTTP_401_UNAUTHORIZED, "not authenticated")
    INTERNAL_ERROR = (status.HTTP_500_INTERNAL_SERVER_ERROR, "server error")

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    kind: AuthErrorKind


Result = Union[Ok[T], Err]
