from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

import app.schemas.auth as schemas
from app.core.dependencies import get_auth_service
from app.core.errors import AuthError
from app.services.auth_service import AuthService

router = APIRouter()
group_tags: List[str] = ["Auth"]

_error_responses = {
    status.HTTP_400_BAD_REQUEST: {"model": schemas.AuthErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": schemas.AuthErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": schemas.AuthErrorResponse},
}


def _raise_http(error: AuthError):
    raise HTTPException(status_code=error.status_code, detail=error.to_dict())


@router.post(
    "/request_nonce",
    tags=group_tags,
    response_model=schemas.NonceResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_error_responses,
)
def request_nonce(
    body: schemas.NonceRequest,
    service: AuthService = Depends(get_auth_service),
) -> schemas.NonceResponse:
    """Generate and store a nonce for a wallet address, with the message the wallet must sign."""
    try:
        challenge = service.begin_challenge(body.address, body.chain)
    except AuthError as e:
        _raise_http(e)

    return schemas.NonceResponse(
        nonce=challenge.nonce,
        challenge_message=challenge.challenge_message,
        expires_in_seconds=challenge.expires_in_seconds,
    )


@router.post(
    "/verify",
    tags=group_tags,
    response_model=schemas.AuthResponse,
    responses=_error_responses,
)
def verify_wallet(
    body: schemas.VerifyRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> schemas.AuthResponse:
    """Verify a signed nonce and return an access token."""
    try:
        outcome = service.complete_challenge(body.address, body.chain, body.signature, body.nonce)
    except AuthError as e:
        _raise_http(e)

    response.headers["Authorization"] = f"Bearer {outcome.issued_token}"
    return schemas.AuthResponse(
        access_token=outcome.issued_token,
        wallet_address=outcome.identity.wallet_address,
        chain=outcome.identity.chain.value,
        role=outcome.identity.role.value,
        expires_in_seconds=outcome.expires_in_seconds,
    )
