"""
Authentication error taxonomy.

Every failed login ends in exactly one AuthError. The codes that stem from
client-supplied data carry generic messages only; IDENTITY_RESOLUTION_FAILURE
and TOKEN_ISSUANCE_FAILURE mean a downstream outage and the client should retry.
"""

from enum import Enum
from typing import Dict, Optional

from fastapi import status


class AuthErrorCode(str, Enum):
    INVALID_ADDRESS_FORMAT = "INVALID_ADDRESS_FORMAT"
    INVALID_OR_EXPIRED_NONCE = "INVALID_OR_EXPIRED_NONCE"
    UNSUPPORTED_SIGNATURE_ENCODING = "UNSUPPORTED_SIGNATURE_ENCODING"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"
    IDENTITY_RESOLUTION_FAILURE = "IDENTITY_RESOLUTION_FAILURE"
    TOKEN_ISSUANCE_FAILURE = "TOKEN_ISSUANCE_FAILURE"


_STATUS_CODES: Dict[AuthErrorCode, int] = {
    AuthErrorCode.INVALID_ADDRESS_FORMAT: status.HTTP_400_BAD_REQUEST,
    AuthErrorCode.UNSUPPORTED_SIGNATURE_ENCODING: status.HTTP_400_BAD_REQUEST,
    AuthErrorCode.INVALID_OR_EXPIRED_NONCE: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.SIGNATURE_MISMATCH: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.IDENTITY_RESOLUTION_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
    AuthErrorCode.TOKEN_ISSUANCE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_MESSAGES: Dict[AuthErrorCode, str] = {
    AuthErrorCode.INVALID_ADDRESS_FORMAT: "Invalid wallet address format",
    AuthErrorCode.INVALID_OR_EXPIRED_NONCE: "Invalid or expired nonce",
    AuthErrorCode.UNSUPPORTED_SIGNATURE_ENCODING: "Unsupported signature encoding",
    AuthErrorCode.SIGNATURE_MISMATCH: "Invalid signature",
    AuthErrorCode.IDENTITY_RESOLUTION_FAILURE: "Identity service unavailable",
    AuthErrorCode.TOKEN_ISSUANCE_FAILURE: "Token service unavailable",
}


class AuthError(Exception):
    """Categorized authentication failure."""

    def __init__(self, code: AuthErrorCode, message: Optional[str] = None):
        self.code = code
        self.message = message or _MESSAGES[code]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.code]

    @property
    def retryable(self) -> bool:
        return self.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code.value, "message": self.message}
