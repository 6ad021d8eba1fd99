"""
Canonical challenge messages.

The same constructor is used when the challenge is handed to the client and
when the signature is checked, so the signed and the verified message cannot
drift apart. Only the nonce and the address come from the request; the rest
is fixed by configuration.

- starknet: SNIP-12 (revision 0) typed data, signed with the account's signMessage
- evm: plain text, signed with personal_sign (EIP-191)
"""

from typing import Any, Dict, Union

from app.core.config import settings
from app.core.wallet import ChainFamily, WalletAddress

ChallengeMessage = Union[Dict[str, Any], str]

STARKNET_PRIMARY_TYPE = "Authentication"

STARKNET_TYPES: Dict[str, Any] = {
    "StarkNetDomain": [
        {"name": "name", "type": "felt"},
        {"name": "version", "type": "felt"},
        {"name": "chainId", "type": "felt"},
    ],
    STARKNET_PRIMARY_TYPE: [
        {"name": "name", "type": "felt"},
        {"name": "nonce", "type": "felt"},
    ],
}


def starknet_typed_data(nonce: str) -> Dict[str, Any]:
    return {
        "types": {name: [dict(field) for field in fields] for name, fields in STARKNET_TYPES.items()},
        "primaryType": STARKNET_PRIMARY_TYPE,
        "domain": {
            "name": settings.AUTH_DOMAIN_NAME,
            "version": settings.AUTH_DOMAIN_VERSION,
            "chainId": settings.STARKNET_CHAIN_ID,
        },
        "message": {
            "name": settings.AUTH_STATEMENT,
            "nonce": nonce,
        },
    }


def evm_personal_message(address: WalletAddress, nonce: str) -> str:
    return "\n".join(
        [
            settings.AUTH_STATEMENT,
            f"Domain: {settings.AUTH_DOMAIN_NAME}",
            f"Version: {settings.AUTH_DOMAIN_VERSION}",
            f"Chain ID: {settings.EVM_CHAIN_ID}",
            f"Address: {address.value}",
            f"Nonce: {nonce}",
        ]
    )


def challenge_message_for(address: WalletAddress, nonce: str) -> ChallengeMessage:
    """Build the exact message the wallet behind `address` must sign for `nonce`."""
    if address.family is ChainFamily.STARKNET:
        return starknet_typed_data(nonce)
    return evm_personal_message(address, nonce)
