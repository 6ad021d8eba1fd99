import enum
import uuid

from sqlalchemy import Column, DateTime, Enum, String
from sqlalchemy.sql import func

from app.db.base import Base


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    """Model for users table, one row per authenticated wallet
    Example:
    {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "wallet_address": "0x04a1...c3f2",
        "chain": "starknet",
        "display_name": null,
        "public_key": "0x04a1...c3f2",
        "role": "user",
        "created_at": "2024-01-01T12:00:00",
        "last_login_at": "2024-01-01T12:00:00"
    }
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    wallet_address = Column(String(66), nullable=False, unique=True, index=True)
    chain = Column(String(16), nullable=False)
    display_name = Column(String(255), nullable=True)
    public_key = Column(String(66), nullable=False)
    role = Column(
        Enum(Role, values_callable=lambda roles: [r.value for r in roles], native_enum=False),
        nullable=False,
        default=Role.USER,
    )
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    last_login_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
