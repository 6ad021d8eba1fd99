"""
Wallet Authentication Service

Two-phase challenge/response login:

    IDLE --begin_challenge--> CHALLENGE_ISSUED
    CHALLENGE_ISSUED --bad signature--> CHALLENGE_ISSUED (attempt counted, same nonce)
    CHALLENGE_ISSUED --nonce invalid/expired/exhausted--> REJECTED
    CHALLENGE_ISSUED --good signature--> VERIFIED --identity + token--> AUTHENTICATED

The nonce is burned right after the signature verifies and before the
identity and the token are touched, so a failure further down cannot be
turned into a replay of the same signature.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.core.challenge import ChallengeMessage, challenge_message_for
from app.core.config import settings
from app.core.errors import AuthError, AuthErrorCode
from app.core.jwt_utils import TokenIssuer, build_token_issuer
from app.core.nonce_store import NonceStore
from app.core.signature import SignatureVerifier
from app.core.wallet import ChainFamily, WalletAddress
from app.db.session import SessionLocal
from app.services.identity_store import Identity, IdentityStore, SqlIdentityStore

logger = logging.getLogger(__name__)


@dataclass
class Challenge:
    nonce: str
    challenge_message: ChallengeMessage
    expires_in_seconds: int
    address: WalletAddress


@dataclass
class AuthenticationOutcome:
    identity: Identity
    issued_token: str
    expires_in_seconds: int


class AuthService:
    def __init__(
        self,
        nonce_store: NonceStore,
        signature_verifier: SignatureVerifier,
        identity_store: IdentityStore,
        token_issuer: TokenIssuer,
    ):
        self.nonce_store = nonce_store
        self.signature_verifier = signature_verifier
        self.identity_store = identity_store
        self.token_issuer = token_issuer

    def start(self):
        self.nonce_store.start_reaper()
        logger.info("Authentication service started")

    def stop(self):
        self.nonce_store.stop_reaper()
        logger.info("Authentication service stopped")

    def begin_challenge(self, raw_address: Any, chain: ChainFamily | str) -> Challenge:
        """
        Issue a challenge for a wallet.

        Raises:
            AuthError INVALID_ADDRESS_FORMAT: before any nonce is created
        """
        address = WalletAddress.parse(raw_address, chain)
        nonce = self.nonce_store.generate(address)
        if nonce is None:
            raise AuthError(AuthErrorCode.INVALID_ADDRESS_FORMAT)

        logger.info("Challenge issued for %s (%s)", address.short(), address.family.value)
        return Challenge(
            nonce=nonce.value,
            challenge_message=challenge_message_for(address, nonce.value),
            expires_in_seconds=self.nonce_store.ttl_seconds,
            address=address,
        )

    def complete_challenge(
        self,
        raw_address: Any,
        chain: ChainFamily | str,
        signature: Any,
        nonce: Optional[str],
    ) -> AuthenticationOutcome:
        """
        Check the signed challenge and open a session.

        Raises:
            AuthError: exactly one category per failed attempt
        """
        address = WalletAddress.parse(raw_address, chain)

        issued = self.nonce_store.get(address) if self.nonce_store.verify(address, nonce) else None
        if issued is None:
            logger.warning("Rejected login for %s: invalid or expired nonce", address.short())
            raise AuthError(AuthErrorCode.INVALID_OR_EXPIRED_NONCE)

        envelope = self.signature_verifier.parse(address, signature)
        if envelope is None:
            self.nonce_store.record_failure(address)
            raise AuthError(AuthErrorCode.UNSUPPORTED_SIGNATURE_ENCODING)

        # rebuilt from the stored value, never from the client's spelling of it
        message = challenge_message_for(address, issued.value)
        if not self.signature_verifier.verify(address, message, envelope):
            remaining = self.nonce_store.record_failure(address)
            logger.warning(
                "Rejected login for %s: signature mismatch (%d attempts left)",
                address.short(),
                remaining,
            )
            raise AuthError(AuthErrorCode.SIGNATURE_MISMATCH)

        # one success, one use
        if not self.nonce_store.invalidate(address, expected_value=issued.value):
            logger.warning("Rejected login for %s: nonce already used", address.short())
            raise AuthError(AuthErrorCode.INVALID_OR_EXPIRED_NONCE)

        identity = self.resolve_identity(address)
        token = self.issue_token(identity)
        logger.info("Wallet %s authenticated as identity %s", address.short(), identity.id)
        return AuthenticationOutcome(
            identity=identity,
            issued_token=token,
            expires_in_seconds=self.token_issuer.expires_seconds,
        )

    def resolve_identity(self, address: WalletAddress) -> Identity:
        try:
            identity = self.identity_store.find_by_address(address)
            if identity is None:
                identity = self.identity_store.create(address)
            self.identity_store.record_login(identity)
        except AuthError:
            raise
        except Exception as e:
            logger.error("Identity resolution failed for %s: %s", address.short(), e, exc_info=True)
            raise AuthError(AuthErrorCode.IDENTITY_RESOLUTION_FAILURE)
        return identity

    def issue_token(self, identity: Identity) -> str:
        claims = {
            "sub": identity.id,
            "wallet_address": identity.wallet_address,
            "chain": identity.chain.value,
            "role": identity.role.value,
        }
        try:
            return self.token_issuer.issue(claims)
        except AuthError:
            raise
        except Exception as e:
            logger.error("Token issuance failed for identity %s: %s", identity.id, e, exc_info=True)
            raise AuthError(AuthErrorCode.TOKEN_ISSUANCE_FAILURE)


def build_auth_service() -> AuthService:
    """Wire the service with the collaborators configured in settings."""
    return AuthService(
        nonce_store=NonceStore(
            ttl_seconds=settings.NONCE_EXPIRY_SECONDS,
            max_attempts=settings.NONCE_MAX_ATTEMPTS,
            cleanup_interval_seconds=settings.NONCE_CLEANUP_INTERVAL_SECONDS,
        ),
        signature_verifier=SignatureVerifier(),
        identity_store=SqlIdentityStore(SessionLocal),
        token_issuer=build_token_issuer(),
    )
