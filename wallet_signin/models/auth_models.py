from pydantic import BaseModel, Field
from typing import Dict, Any, Optional

class ErrorResponse(BaseModel):
    error: str = Field(..., description="Generic, client-safe error message.")

class NonceResponse(BaseModel):
    nonceToken: str = Field(..., description="Signed, self-expiring token carrying the challenge nonce.")
    message: str = Field(..., description="Exact text the wallet must personal_sign.")

class VerifyRequest(BaseModel):
    # Optional here so that missing fields produce our own 400, not a validation error.
    address: Optional[str] = Field(None, description="Address the client claims to own (0x...).")
    signature: Optional[str] = Field(None, description="Hex-encoded personal_sign signature of the message.")
    nonceToken: Optional[str] = Field(None, description="Token returned by the nonce endpoint.")

class VerifyResponse(BaseModel):
    ok: bool = True
    token: str = Field(..., description="Session JWT, also delivered as an HTTP-only cookie.")
    payload: Dict[str, Any] = Field(..., description="Decoded session claims (sub, iat, exp).")
    address: str = Field(..., description="The verified address, lowercased.")

class MeResponse(BaseModel):
    authenticated: bool
    address: Optional[str] = None
    token: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

class LogoutResponse(BaseModel):
    ok: bool = True
