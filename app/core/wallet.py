"""
Wallet address value type.

Two chain families are accepted and the caller always names the family:
- starknet: smart-contract accounts, 0x + 64 hex characters
- evm: classic single-key accounts, 0x + 40 hex characters
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from app.core.errors import AuthError, AuthErrorCode


class ChainFamily(str, Enum):
    STARKNET = "starknet"
    EVM = "evm"


ADDRESS_PATTERNS: Dict[ChainFamily, "re.Pattern[str]"] = {
    ChainFamily.STARKNET: re.compile(r"^0x[0-9a-f]{64}$"),
    ChainFamily.EVM: re.compile(r"^0x[0-9a-f]{40}$"),
}


@dataclass(frozen=True)
class WalletAddress:
    family: ChainFamily
    value: str

    @classmethod
    def parse(cls, raw: Any, family: Union[ChainFamily, str]) -> "WalletAddress":
        """
        Normalize and validate a client supplied address.

        Raises:
            AuthError INVALID_ADDRESS_FORMAT: unknown family or wrong shape
        """
        try:
            family = ChainFamily(family)
        except ValueError:
            raise AuthError(AuthErrorCode.INVALID_ADDRESS_FORMAT, "Unsupported chain family")

        if not isinstance(raw, str):
            raise AuthError(AuthErrorCode.INVALID_ADDRESS_FORMAT)

        value = raw.strip().lower()
        if not ADDRESS_PATTERNS[family].match(value):
            raise AuthError(AuthErrorCode.INVALID_ADDRESS_FORMAT)
        return cls(family=family, value=value)

    @classmethod
    def try_parse(cls, raw: Any, family: Union[ChainFamily, str]) -> Optional["WalletAddress"]:
        try:
            return cls.parse(raw, family)
        except AuthError:
            return None

    def as_int(self) -> int:
        return int(self.value, 16)

    def short(self) -> str:
        """Truncated form for log lines."""
        return f"{self.value[:8]}...{self.value[-4:]}"

    def __str__(self) -> str:
        return self.value
