"""
Identity lookup and creation for authenticated wallets.

Identities are only created after a signature has been verified; the
authentication service is the sole caller of create().
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import AuthError, AuthErrorCode
from app.core.wallet import ChainFamily, WalletAddress
from app.models.users import Role, User

logger = logging.getLogger(__name__)


@dataclass
class Identity:
    id: str
    wallet_address: str
    chain: ChainFamily
    public_key: str
    role: Role = Role.USER
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, user: User) -> "Identity":
        return cls(
            id=user.id,
            wallet_address=user.wallet_address,
            chain=ChainFamily(user.chain),
            public_key=user.public_key,
            role=Role(user.role),
            display_name=user.display_name,
            created_at=user.created_at,
            last_login_at=user.last_login_at,
        )


class IdentityStore(ABC):
    @abstractmethod
    def find_by_address(self, address: WalletAddress) -> Optional[Identity]:
        ...

    @abstractmethod
    def create(
        self,
        address: WalletAddress,
        display_name: Optional[str] = None,
        role: Role = Role.USER,
    ) -> Identity:
        ...

    def record_login(self, identity: Identity) -> None:
        """Hook for stores that track the last login time."""


class SqlIdentityStore(IdentityStore):
    """
    SQLAlchemy backed identity store over the users table.

    Any database error surfaces as AuthError IDENTITY_RESOLUTION_FAILURE.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def find_by_address(self, address: WalletAddress) -> Optional[Identity]:
        db = self.session_factory()
        try:
            user = db.query(User).filter(User.wallet_address == address.value).first()
            return Identity.from_record(user) if user else None
        except SQLAlchemyError as e:
            logger.error("Identity lookup failed for %s: %s", address.short(), e)
            raise AuthError(AuthErrorCode.IDENTITY_RESOLUTION_FAILURE)
        finally:
            db.close()

    def create(
        self,
        address: WalletAddress,
        display_name: Optional[str] = None,
        role: Role = Role.USER,
    ) -> Identity:
        db = self.session_factory()
        try:
            user = User(
                wallet_address=address.value,
                chain=address.family.value,
                public_key=address.value,
                display_name=display_name,
                role=role,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info("Created identity %s for %s", user.id, address.short())
            return Identity.from_record(user)
        except IntegrityError:
            # concurrent first login for the same wallet
            db.rollback()
            existing = self.find_by_address(address)
            if existing is None:
                raise AuthError(AuthErrorCode.IDENTITY_RESOLUTION_FAILURE)
            return existing
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Identity creation failed for %s: %s", address.short(), e)
            raise AuthError(AuthErrorCode.IDENTITY_RESOLUTION_FAILURE)
        finally:
            db.close()

    def record_login(self, identity: Identity) -> None:
        db = self.session_factory()
        try:
            now = datetime.now(timezone.utc)
            db.query(User).filter(User.id == identity.id).update({User.last_login_at: now})
            db.commit()
            identity.last_login_at = now
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to record login for identity %s: %s", identity.id, e)
            raise AuthError(AuthErrorCode.IDENTITY_RESOLUTION_FAILURE)
        finally:
            db.close()
