from typing import Optional

from app.schemas.my_base_model import CustomBaseModel


class ProfileResponse(CustomBaseModel):
    """Response model for user profile"""

    wallet_address: str = ""
    chain: str = "starknet"
    role: str = "user"
    display_name: Optional[str] = None
