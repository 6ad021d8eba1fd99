"""
Wallet Signature Verification

Checks that the holder of a wallet signed exactly the challenge issued for it.

Starknet accounts are smart contracts, and the signature array they return
depends on the account implementation:
- [r, s]                                       plain single-key account
- [signer_type, r, s]                          single-signer account (e.g. Argent)
- [signer_type, signer_1, r, s, signer_2]      two-signer account (owner + guardian)
Any other length is rejected instead of guessing where r and s are.

EVM accounts sign the challenge text with personal_sign; the signer is
recovered from the 65-byte signature and compared with the claimed address.

The cryptographic primitives are behind StarkCurve and EvmSignerRecovery so they can be swapped
(or mocked) without touching parsing and message reconstruction.
Every failure is logged with its category and reported as a plain False.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from starknet_py.hash.utils import verify_message_signature
from starknet_py.utils.typed_data import TypedData

from app.core.challenge import ChallengeMessage
from app.core.wallet import ChainFamily, WalletAddress

logger = logging.getLogger(__name__)

# 2**251 + 17 * 2**192 + 1
STARK_FIELD_PRIME = 0x800000000000011000000000000000000000000000000000000000000000001
EVM_SIGNATURE_NUM_BYTES = 65

# bounded so oversized input is rejected before int() sees it
_HEX_RE = re.compile(r"^0x[0-9a-fA-F]{1,64}$")
_DEC_RE = re.compile(r"^[0-9]{1,%d}$" % len(str(STARK_FIELD_PRIME)))
_BLOB_RE = re.compile(r"^(0x)?[0-9a-fA-F]{%d}$" % (EVM_SIGNATURE_NUM_BYTES * 2))


class SignatureEncodingError(ValueError):
    """Raised when a raw signature does not match any accepted encoding."""


@dataclass(frozen=True)
class SimplePair:
    r: int
    s: int


@dataclass(frozen=True)
class TaggedPair:
    signer_tag: int
    r: int
    s: int


@dataclass(frozen=True)
class MultiSigPair:
    signer_tag: int
    signer_a: int
    r: int
    s: int
    signer_b: int


@dataclass(frozen=True)
class EcdsaCompact:
    recoverable_signature: str


StarknetEnvelope = Union[SimplePair, TaggedPair, MultiSigPair]
SignatureEnvelope = Union[SimplePair, TaggedPair, MultiSigPair, EcdsaCompact]


def _parse_component(value: Any) -> int:
    if isinstance(value, bool):
        raise SignatureEncodingError("boolean signature component")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _HEX_RE.match(value.strip()):
        number = int(value.strip(), 16)
    elif isinstance(value, str) and _DEC_RE.match(value.strip()):
        number = int(value.strip())
    else:
        raise SignatureEncodingError("malformed signature component")

    if not 0 <= number < STARK_FIELD_PRIME:
        raise SignatureEncodingError("signature component out of field range")
    return number


def parse_starknet_signature(raw: Any) -> StarknetEnvelope:
    if not isinstance(raw, (list, tuple)):
        raise SignatureEncodingError("starknet signature must be a list of components")

    parts = [_parse_component(item) for item in raw]
    if len(parts) == 2:
        return SimplePair(r=parts[0], s=parts[1])
    if len(parts) == 3:
        return TaggedPair(signer_tag=parts[0], r=parts[1], s=parts[2])
    if len(parts) == 5:
        return MultiSigPair(
            signer_tag=parts[0],
            signer_a=parts[1],
            r=parts[2],
            s=parts[3],
            signer_b=parts[4],
        )
    raise SignatureEncodingError(f"unsupported component count: {len(parts)}")


def parse_evm_signature(raw: Any) -> EcdsaCompact:
    if not isinstance(raw, str) or not _BLOB_RE.match(raw.strip()):
        raise SignatureEncodingError("evm signature must be a 65-byte hex string")

    blob = raw.strip().lower()
    if not blob.startswith("0x"):
        blob = "0x" + blob
    return EcdsaCompact(recoverable_signature=blob)


def parse_signature(family: ChainFamily, raw: Any) -> SignatureEnvelope:
    """
    Parse a raw signature into its envelope.

    Raises:
        SignatureEncodingError: shape not recognized for the chain family
    """
    if family is ChainFamily.STARKNET:
        return parse_starknet_signature(raw)
    if family is ChainFamily.EVM:
        return parse_evm_signature(raw)
    raise SignatureEncodingError(f"unsupported chain family: {family}")


class StarkCurve(ABC):
    """Curve check of a starknet (r, s) pair against a message hash."""

    @abstractmethod
    def verify(self, message_hash: int, signature: Tuple[int, int], address: WalletAddress) -> bool:
        ...


class EvmSignerRecovery(ABC):
    """Recovers the address that signed an EVM personal message."""

    @abstractmethod
    def recover_signer(self, message: str, signature: str) -> str:
        ...


class StarkCurveVerifier(StarkCurve):
    """ECDSA over the STARK curve, the address standing in for the public key."""

    def verify(self, message_hash: int, signature: Tuple[int, int], address: WalletAddress) -> bool:
        r, s = signature
        return verify_message_signature(message_hash, [r, s], address.as_int())


class EvmRecoveryVerifier(EvmSignerRecovery):
    """secp256k1 signer recovery for EIP-191 personal messages."""

    def recover_signer(self, message: str, signature: str) -> str:
        return Account.recover_message(encode_defunct(text=message), signature=signature)


class SignatureVerifier:
    """
    Dispatches a signature to the verification scheme of the wallet's chain family.
    """

    def __init__(
        self,
        stark_curve: Optional[StarkCurve] = None,
        evm_recovery: Optional[EvmSignerRecovery] = None,
    ):
        self.stark_curve = stark_curve or StarkCurveVerifier()
        self.evm_recovery = evm_recovery or EvmRecoveryVerifier()

    def parse(self, address: WalletAddress, raw: Any) -> Optional[SignatureEnvelope]:
        """Parse a raw signature, logging and returning None when it is malformed."""
        try:
            return parse_signature(address.family, raw)
        except SignatureEncodingError as e:
            logger.warning("Unsupported signature encoding from %s: %s", address.short(), e)
            return None

    def verify(
        self,
        address: WalletAddress,
        message: ChallengeMessage,
        signature: Union[SignatureEnvelope, Any],
    ) -> bool:
        """
        Verify a signature (raw or already parsed) over the challenge message.

        Never raises; every failure path returns False.
        """
        if not isinstance(signature, (SimplePair, TaggedPair, MultiSigPair, EcdsaCompact)):
            signature = self.parse(address, signature)
            if signature is None:
                return False

        try:
            if address.family is ChainFamily.STARKNET:
                return self._verify_starknet(address, message, signature)
            return self._verify_evm(address, message, signature)
        except Exception as e:
            logger.warning(
                "Signature primitive failed for %s: %s: %s",
                address.short(),
                type(e).__name__,
                e,
            )
            return False

    def _verify_starknet(
        self,
        address: WalletAddress,
        message: ChallengeMessage,
        envelope: SignatureEnvelope,
    ) -> bool:
        if isinstance(envelope, EcdsaCompact) or not isinstance(message, dict):
            logger.warning("Signature envelope does not match starknet account %s", address.short())
            return False

        message_hash = TypedData.from_dict(message).message_hash(address.as_int())
        is_valid = bool(self.stark_curve.verify(message_hash, (envelope.r, envelope.s), address))
        if not is_valid:
            logger.info(
                "Starknet signature mismatch for %s (%s)",
                address.short(),
                type(envelope).__name__,
            )
        return is_valid

    def _verify_evm(
        self,
        address: WalletAddress,
        message: ChallengeMessage,
        envelope: SignatureEnvelope,
    ) -> bool:
        if not isinstance(envelope, EcdsaCompact) or not isinstance(message, str):
            logger.warning("Signature envelope does not match evm account %s", address.short())
            return False

        recovered = self.evm_recovery.recover_signer(message, envelope.recoverable_signature)
        is_valid = isinstance(recovered, str) and recovered.lower() == address.value
        if not is_valid:
            logger.info("EVM signature mismatch for %s", address.short())
        return is_valid
