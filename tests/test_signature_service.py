import pytest

from wallet_signin.exceptions import MalformedSignature, SignatureMismatch
from wallet_signin.services import signature_service

MESSAGE = "Sign-in to https://testserver\n\nNonce: abc123XYZ\nExpires-in: 120s"


def test_recovers_signer(wallet, sign_message):
    signature = sign_message(wallet, MESSAGE)
    assert signature_service.recover_address(MESSAGE, signature) == wallet.address


def test_signature_without_0x_prefix_is_accepted(wallet, sign_message):
    signature = sign_message(wallet, MESSAGE)[2:]
    assert signature_service.recover_address(MESSAGE, signature) == wallet.address


def test_verify_is_case_insensitive(wallet, sign_message):
    signature = sign_message(wallet, MESSAGE)
    recovered = signature_service.verify_signature(MESSAGE, signature, wallet.address.lower())
    assert recovered == wallet.address


def test_different_message_recovers_different_address(wallet, sign_message):
    signature = sign_message(wallet, MESSAGE)
    other_message = MESSAGE.replace("https://testserver", "https://evil.example")

    with pytest.raises(SignatureMismatch):
        signature_service.verify_signature(other_message, signature, wallet.address)


def test_signature_from_other_wallet(wallet, other_wallet, sign_message):
    signature = sign_message(other_wallet, MESSAGE)

    with pytest.raises(SignatureMismatch) as exc_info:
        signature_service.verify_signature(MESSAGE, signature, wallet.address)
    assert exc_info.value.recovered == other_wallet.address


@pytest.mark.parametrize("signature", ["0x1234", "not-a-signature", "0x" + "zz" * 65])
def test_malformed_signature(signature):
    with pytest.raises(MalformedSignature):
        signature_service.recover_address(MESSAGE, signature)
