from starknet_py.utils.typed_data import TypedData

from app.core.challenge import challenge_message_for, evm_personal_message, starknet_typed_data
from app.core.config import settings
from app.core.wallet import ChainFamily, WalletAddress

NONCE = "0x" + "9f" * 28
STARK_ADDRESS = WalletAddress.parse("0x" + "0" * 60 + "beef", ChainFamily.STARKNET)
EVM_ADDRESS = WalletAddress.parse("0x" + "de" * 20, ChainFamily.EVM)


def test_starknet_challenge_is_typed_data():
    message = challenge_message_for(STARK_ADDRESS, NONCE)

    assert message["primaryType"] == "Authentication"
    assert message["message"] == {"name": settings.AUTH_STATEMENT, "nonce": NONCE}
    assert message["domain"] == {
        "name": settings.AUTH_DOMAIN_NAME,
        "version": settings.AUTH_DOMAIN_VERSION,
        "chainId": settings.STARKNET_CHAIN_ID,
    }
    # must be hashable by the same library that verifies it
    TypedData.from_dict(message).message_hash(STARK_ADDRESS.as_int())


def test_starknet_challenge_is_rebuilt_identically():
    first = starknet_typed_data(NONCE)
    second = starknet_typed_data(NONCE)

    assert first == second
    first["types"]["Authentication"].append({"name": "extra", "type": "felt"})
    assert starknet_typed_data(NONCE) == second


def test_starknet_hash_binds_the_nonce():
    other_nonce = NONCE[:-1] + "0"
    hash_a = TypedData.from_dict(starknet_typed_data(NONCE)).message_hash(STARK_ADDRESS.as_int())
    hash_b = TypedData.from_dict(starknet_typed_data(other_nonce)).message_hash(STARK_ADDRESS.as_int())

    assert hash_a != hash_b


def test_evm_challenge_is_personal_message_text():
    message = challenge_message_for(EVM_ADDRESS, NONCE)

    assert message == evm_personal_message(EVM_ADDRESS, NONCE)
    lines = message.split("\n")
    assert lines[0] == settings.AUTH_STATEMENT
    assert f"Chain ID: {settings.EVM_CHAIN_ID}" in lines
    assert lines[-2] == f"Address: {EVM_ADDRESS.value}"
    assert lines[-1] == f"Nonce: {NONCE}"
