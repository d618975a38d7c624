from fastapi import APIRouter, HTTPException, status, Request, Depends
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer # For Bearer fallback
from typing import Optional
import logging

from ..models.auth_models import (
    ErrorResponse,
    LogoutResponse,
    MeResponse,
    NonceResponse,
    VerifyRequest,
    VerifyResponse,
)
from ..results import AuthErrorKind, Err
from ..services.auth_service import AuthService

# auto_error=False: the session cookie is the primary credential, the header is a fallback
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/verify", auto_error=False)

router = APIRouter(
    prefix="/api/auth",
    tags=["Authentication (Wallet Sign-In)"],
)

logger = logging.getLogger(__name__)

# --- Helper Functions ---
def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service

def request_origin(request: Request) -> str:
    """Origin the client signed for: the Origin header, else this request's own origin."""
    return request.headers.get("origin") or f"{request.url.scheme}://{request.url.netloc}"

def error_response(err: Err) -> JSONResponse:
    return JSONResponse(status_code=err.kind.status_code, content={"error": err.kind.message})

# --- API Endpoints ---
@router.get(
    "/nonce",
    response_model=NonceResponse,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}}
)
def get_nonce(
    request: Request,
    address: Optional[str] = None,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Issues a fresh nonce token and the exact message the wallet must sign.

    - **address**: optional; when given, the nonce can only be redeemed by this address.
    """
    result = auth_service.issue_nonce(request_origin(request), address)
    if isinstance(result, Err):
        return error_response(result)
    return NonceResponse(nonceToken=result.value.nonce_token, message=result.value.message)

@router.post(
    "/verify",
    response_model=VerifyResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    }
)
def verify_signature(
    verify_request: VerifyRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Verifies a signed nonce and starts a session.

    Checks the nonce token (signature, expiry, address binding), recovers the
    signer of the reconstructed message and, on success, sets the session
    cookie and returns the session token with its claims.
    """
    result = auth_service.complete_sign_in(
        request_origin(request),
        verify_request.address,
        verify_request.signature,
        verify_request.nonceToken,
    )
    if isinstance(result, Err):
        return error_response(result)

    sign_in = result.value
    body = VerifyResponse(token=sign_in.token, payload=sign_in.claims, address=sign_in.address)
    response = JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump())
    response.headers.append("set-cookie", sign_in.cookie)
    return response

@router.get(
    "/me",
    response_model=MeResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": MeResponse}}
)
def who_am_i(request: Request, auth_service: AuthService = Depends(get_auth_service)):
    """Reports the address behind the session cookie, if any."""
    result = auth_service.whoami(request.headers.get("cookie"))
    if isinstance(result, Err):
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"authenticated": False})
    session = result.value
    return MeResponse(authenticated=True, address=session.address, token=session.token, payload=session.claims)

@router.post("/logout", response_model=LogoutResponse)
def logout(request: Request, auth_service: AuthService = Depends(get_auth_service)):
    """Clears the session cookie and revokes the presented session token."""
    clearing_cookie = auth_service.logout(request.headers.get("cookie"))
    response = JSONResponse(status_code=status.HTTP_200_OK, content=LogoutResponse().model_dump())
    response.headers.append("set-cookie", clearing_cookie)
    return response


# --- Secure Dependency for Authenticated User ---
async def get_current_active_user(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> str:
    """
    Dependency that resolves the session from the session cookie, falling back
    to an Authorization: Bearer header, and returns the user's address.
    Raises HTTPException 401 if neither carries a valid, unrevoked session.
    """
    transport = auth_service.transport
    token = transport.read(request.headers.get("cookie")) or bearer_token
    result = transport.introspect(token)
    if isinstance(result, Err):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AuthErrorKind.UNAUTHENTICATED.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return result.value.address
