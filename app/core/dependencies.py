"""
FastAPI Authentication Dependencies
This module provides FastAPI dependency functions that can be injected into route handlers
to reach the authentication service and to extract and validate JWT tokens from the
Authorization header.
Usage in endpoints:
    @router.get("/protected")
    def protected_route(claims: dict = Depends(get_current_user)):
        # claims are automatically extracted from the JWT token
        return {"user": claims["wallet_address"]}
Flow:
1. Client sends request with Authorization: Bearer <token> header
2. FastAPI calls get_current_user() dependency
3. _extract_token() extracts token from header
4. verify_token() validates the JWT (from jwt_utils.py)
5. Returns the token claims to the route handler
"""

from typing import Any, Dict, Optional

from fastapi import Header, HTTPException, Request, status

from app.core.jwt_utils import verify_token
from app.services.auth_service import AuthService


def get_auth_service(request: Request) -> AuthService:
    """The process-wide AuthService created by the application lifespan."""
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service not ready",
        )
    return service


def _extract_token(authorization: Optional[str]) -> Dict[str, Any]:
    """
    Extract JWT token from Authorization header.
    Supports both "Bearer <token>" and plain token formats.
    Args:
        authorization: The Authorization header value (e.g., "Bearer eyJ...")
    Returns:
        The decoded token claims
    Raises:
        HTTPException 401: If Authorization header is missing or invalid
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
        )

    authorization = authorization.strip()
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    else:
        token = authorization
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
        )

    return verify_token(token)


def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Dict[str, Any]:
    """
    returning the verified token claims (sub, wallet_address, chain, role).
    """
    return _extract_token(authorization)
