import logging

from eth_account import Account
from eth_account.messages import encode_defunct

from ..exceptions import MalformedSignature, SignatureMismatch

logger = logging.getLogger(__name__)


def recover_address(message: str, signature: str) -> str:
    """
    Recovers the address that personal_sign'ed (EIP-191) the exact message text.
    Raises MalformedSignature if the signature cannot be parsed or recovered.
    """
    try:
        return Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as e:
        # eth_account raises ValueError, TypeError and eth_keys validation errors
        # depending on which part of the signature is bad.
        logger.warning(f"Could not recover signer from signature: {type(e).__name__} - {e}")
        raise MalformedSignature(str(e)) from e


def verify_signature(message: str, signature: str, claimed_address: str) -> str:
    """Returns the recovered address if it matches claimed_address case-insensitively."""
    recovered = recover_address(message, signature)
    if recovered.lower() != claimed_address.lower():
        raise SignatureMismatch(claimed=claimed_address, recovered=recovered)
    return recovered
