import pytest

from app.core.errors import AuthError, AuthErrorCode
from app.core.wallet import ChainFamily, WalletAddress
from app.db.base import Base
from app.models.users import Role
from app.services.identity_store import SqlIdentityStore

STARK_ADDRESS = WalletAddress.parse("0x" + "a" * 64, ChainFamily.STARKNET)
EVM_ADDRESS = WalletAddress.parse("0x" + "b" * 40, ChainFamily.EVM)


class TestSqlIdentityStore:
    """Test cases for the users table backed identity store"""

    def test_find_unknown_address(self, session_factory):
        store = SqlIdentityStore(session_factory)

        assert store.find_by_address(STARK_ADDRESS) is None

    def test_create_then_find(self, session_factory):
        store = SqlIdentityStore(session_factory)

        created = store.create(STARK_ADDRESS)
        found = store.find_by_address(STARK_ADDRESS)

        assert found is not None
        assert found.id == created.id
        assert found.wallet_address == STARK_ADDRESS.value
        assert found.chain is ChainFamily.STARKNET
        assert found.public_key == STARK_ADDRESS.value
        assert found.role is Role.USER
        assert found.created_at is not None

    def test_create_with_role_and_name(self, session_factory):
        store = SqlIdentityStore(session_factory)

        identity = store.create(EVM_ADDRESS, display_name="alice", role=Role.ADMIN)

        assert identity.chain is ChainFamily.EVM
        assert identity.role is Role.ADMIN
        assert identity.display_name == "alice"

    def test_duplicate_create_returns_existing(self, session_factory):
        store = SqlIdentityStore(session_factory)

        first = store.create(STARK_ADDRESS)
        second = store.create(STARK_ADDRESS)

        assert second.id == first.id

    def test_record_login_updates_timestamp(self, session_factory):
        store = SqlIdentityStore(session_factory)
        identity = store.create(STARK_ADDRESS)
        before = identity.last_login_at

        store.record_login(identity)

        assert identity.last_login_at is not None
        assert identity.last_login_at != before
        assert store.find_by_address(STARK_ADDRESS).last_login_at is not None

    def test_database_outage_is_categorized(self, session_factory):
        store = SqlIdentityStore(session_factory)
        Base.metadata.drop_all(bind=session_factory.kw["bind"])

        with pytest.raises(AuthError) as exc_info:
            store.find_by_address(STARK_ADDRESS)
        assert exc_info.value.code is AuthErrorCode.IDENTITY_RESOLUTION_FAILURE

        with pytest.raises(AuthError) as exc_info:
            store.create(STARK_ADDRESS)
        assert exc_info.value.code is AuthErrorCode.IDENTITY_RESOLUTION_FAILURE
