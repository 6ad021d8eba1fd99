from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field

from app.core.wallet import ChainFamily
from app.schemas.my_base_model import CustomBaseModel


class NonceRequest(BaseModel):
    """Request model for nonce generation - input validation"""

    address: str = Field(..., description="Wallet address")
    chain: str = Field(ChainFamily.STARKNET.value, description="Chain family of the wallet: starknet or evm")


class NonceResponse(CustomBaseModel):
    """Response model for nonce generation - output"""

    nonce: str = ""
    challenge_message: Union[Dict[str, Any], str] = Field(
        default="", description="Typed data (starknet) or text (evm) the wallet must sign"
    )
    expires_in_seconds: int = 0


class VerifyRequest(BaseModel):
    """Request model for wallet verification - input validation"""

    address: str = Field(..., description="Wallet address")
    chain: str = Field(ChainFamily.STARKNET.value, description="Chain family of the wallet: starknet or evm")
    signature: Union[List[Union[str, int]], str] = Field(
        ..., description="Signature components (starknet) or 65-byte hex signature (evm)"
    )
    nonce: str = Field(..., description="Nonce to verify")


class AuthResponse(CustomBaseModel):
    """Response model for authentication - output"""

    access_token: str
    token_type: str = "bearer"
    wallet_address: str
    chain: str = ChainFamily.STARKNET.value
    role: str = "user"
    expires_in_seconds: int = 0


class AuthErrorResponse(BaseModel):
    """Error body returned by the auth endpoints"""

    detail: Dict[str, str] = Field(..., description="code and message of the failure")
