import jwt
import pytest
from fastapi import HTTPException

from app.core.config import settings
from app.core.errors import AuthError, AuthErrorCode
from app.core.jwt_utils import JwtTokenIssuer, build_token_issuer, verify_token

CLAIMS = {"sub": "user-1", "wallet_address": "0x" + "a" * 64, "chain": "starknet", "role": "user"}


class TestTokenIssuer:
    """Test cases for JwtTokenIssuer"""

    def test_issue_and_verify(self):
        token = build_token_issuer().issue(CLAIMS)

        payload = verify_token(token)
        assert payload["sub"] == "user-1"
        assert payload["wallet_address"] == CLAIMS["wallet_address"]
        assert payload["iss"] == settings.TOKEN_ISSUER
        assert payload["aud"] == settings.TOKEN_AUDIENCE
        assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_SECONDS

    def test_issue_without_secret(self):
        issuer = JwtTokenIssuer(secret=None)

        with pytest.raises(AuthError) as exc_info:
            issuer.issue(CLAIMS)
        assert exc_info.value.code is AuthErrorCode.TOKEN_ISSUANCE_FAILURE
        assert exc_info.value.retryable is True

    def test_issue_without_subject(self):
        with pytest.raises(AuthError) as exc_info:
            build_token_issuer().issue({"wallet_address": CLAIMS["wallet_address"]})
        assert exc_info.value.code is AuthErrorCode.TOKEN_ISSUANCE_FAILURE

    def test_issue_with_unknown_algorithm(self):
        issuer = JwtTokenIssuer(secret=settings.ENCODE_KEY, algorithm="NOPE512")

        with pytest.raises(AuthError) as exc_info:
            issuer.issue(CLAIMS)
        assert exc_info.value.code is AuthErrorCode.TOKEN_ISSUANCE_FAILURE


class TestVerifyToken:
    """Test cases for verify_token"""

    def _issuer(self, **overrides):
        options = dict(
            secret=settings.ENCODE_KEY,
            algorithm=settings.ENCODE_ALGORITHM,
            issuer=settings.TOKEN_ISSUER,
            audience=settings.TOKEN_AUDIENCE,
            expires_seconds=60,
        )
        options.update(overrides)
        return JwtTokenIssuer(**options)

    @pytest.mark.parametrize(
        "overrides, detail",
        [
            ({"expires_seconds": -10}, "Token expired"),
            ({"audience": "someone-else"}, "Invalid token"),
            ({"issuer": "someone-else"}, "Invalid token"),
            ({"secret": "another-secret-" + "x" * 64}, "Invalid token"),
        ],
    )
    def test_rejected_tokens(self, overrides, detail):
        token = self._issuer(**overrides).issue(CLAIMS)

        with pytest.raises(HTTPException) as exc_info:
            verify_token(token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == detail

    def test_missing_token(self):
        with pytest.raises(HTTPException) as exc_info:
            verify_token("")
        assert exc_info.value.detail == "Missing token"

    def test_payload_without_wallet_address(self):
        token = self._issuer().issue({"sub": "user-1"})

        with pytest.raises(HTTPException) as exc_info:
            verify_token(token)
        assert exc_info.value.detail == "Invalid token payload"

    def test_garbage_token(self):
        with pytest.raises(HTTPException) as exc_info:
            verify_token("not.a.jwt")
        assert exc_info.value.detail == "Invalid token"

    def test_unsigned_token_rejected(self):
        token = jwt.encode(dict(CLAIMS), key=None, algorithm="none")

        with pytest.raises(HTTPException):
            verify_token(token)
