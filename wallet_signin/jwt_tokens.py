from typing import Any, Dict

from jose import JWTError, jwt

from .exceptions import ExpiredToken, InvalidToken


def decode_signed(token: str, secret: str, algorithm: str, now: float) -> Dict[str, Any]:
    """
    Verifies the token signature and checks 'exp' against the caller's clock.

    A token is valid only while now < exp. jose's own expiry check reads the
    wall clock at whole-second resolution, so it is disabled here.
    """
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm], options={"verify_exp": False})
    except JWTError as e:
        raise InvalidToken(str(e)) from e

    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise InvalidToken("token missing numeric 'exp'")
    if now >= exp:
        raise ExpiredToken(f"token expired at {exp}")
    return claims
