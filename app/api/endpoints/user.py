from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user
from app.db.session import get_db
from app.models.users import User
from app.schemas.user import ProfileResponse

router = APIRouter()
group_tags: List[str] = ["user"]


@router.get(
    "/profile",
    tags=group_tags,
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
)
def get_profile(
    claims: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    """
    Profile of the authenticated wallet.

    Requires: Authorization: Bearer <token> from /auth/verify
    """
    user = db.query(User).filter(User.id == claims["sub"]).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return ProfileResponse(
        wallet_address=user.wallet_address,
        chain=user.chain,
        role=user.role.value,
        display_name=user.display_name,
    )
