"""
JWT Token Utilities

This module handles JSON Web Token (JWT) creation and verification for wallet authentication.
After a wallet signature has been verified, a JWT is issued that the client sends with
subsequent authenticated API requests.

Flow:
1. User completes the wallet challenge -> JwtTokenIssuer.issue() generates JWT
2. User makes API request with JWT in Authorization header -> verify_token() validates it
3. Protected endpoints use get_current_user() from dependencies.py to read the claims

The JWT contains:
- sub: The identity id
- wallet_address / chain / role: The authenticated wallet and its role
- iss / aud: Fixed issuer and audience (configurable)
- iat: Issued at timestamp
- exp: Expiration timestamp (configurable via ACCESS_TOKEN_EXPIRE_SECONDS)
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import HTTPException, status

from app.core.config import settings
from app.core.errors import AuthError, AuthErrorCode

logger = logging.getLogger(__name__)


class TokenIssuer(ABC):
    """Turns a set of claims into an opaque session credential."""

    expires_seconds: int

    @abstractmethod
    def issue(self, claims: Dict[str, Any]) -> str:
        ...


class JwtTokenIssuer(TokenIssuer):
    def __init__(
        self,
        secret: Optional[str],
        algorithm: str = "HS512",
        issuer: str = "MusicStrk",
        audience: str = "MusicStrk-API-v1",
        expires_seconds: int = 24 * 3600,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self.expires_seconds = expires_seconds

    def issue(self, claims: Dict[str, Any]) -> str:
        """
        Sign a JWT carrying the given claims plus iss, aud, iat and exp.

        Raises:
            AuthError TOKEN_ISSUANCE_FAILURE: missing secret or encoding error
        """
        if not self.secret:
            logger.error("ENCODE_KEY is not configured, cannot issue tokens")
            raise AuthError(AuthErrorCode.TOKEN_ISSUANCE_FAILURE)
        if not claims.get("sub"):
            raise AuthError(AuthErrorCode.TOKEN_ISSUANCE_FAILURE, "Token subject is required")

        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = dict(claims)
        payload.update({
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.expires_seconds)).timestamp()),
        })

        try:
            return jwt.encode(payload, self.secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
            logger.error("JWT encoding failed: %s", e)
            raise AuthError(AuthErrorCode.TOKEN_ISSUANCE_FAILURE)


def build_token_issuer() -> JwtTokenIssuer:
    return JwtTokenIssuer(
        secret=settings.ENCODE_KEY,
        algorithm=settings.ENCODE_ALGORITHM,
        issuer=settings.TOKEN_ISSUER,
        audience=settings.TOKEN_AUDIENCE,
        expires_seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    This is called by protected endpoints to validate the JWT token from the Authorization header.
    Checks token signature, expiration, issuer, audience and required payload fields.

    Args:
        token: The JWT token string from Authorization header

    Returns:
        Decoded JWT payload dictionary containing sub, wallet_address and other claims

    Raises:
        HTTPException 401: If token is missing, expired, invalid, or missing wallet_address
    """
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    if not settings.ENCODE_KEY:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        payload = jwt.decode(
            token,
            settings.ENCODE_KEY,
            algorithms=[settings.ENCODE_ALGORITHM],
            audience=settings.TOKEN_AUDIENCE,
            issuer=settings.TOKEN_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if "wallet_address" not in payload or "sub" not in payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    return payload
