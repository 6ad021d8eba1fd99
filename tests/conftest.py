import os

os.environ.setdefault("ENCODE_KEY", "test-encode-key-" + "0123456789abcdef" * 4)
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starknet_py.hash.utils import message_signature, private_to_stark_key
from starknet_py.utils.typed_data import TypedData
from types import SimpleNamespace
from typing import Generator

from main import app
from app.core.dependencies import get_auth_service
from app.core.jwt_utils import build_token_issuer
from app.core.nonce_store import NonceStore
from app.core.signature import SignatureVerifier
from app.core.wallet import ChainFamily, WalletAddress
from app.db.base import Base
from app.db.session import get_db
from app.services.auth_service import AuthService
from app.services.identity_store import SqlIdentityStore


STARK_PRIVATE_KEY = 0x3C1E9550E66958296D11B60F8E8E7A7AD990D07FA65D5F7652C4A6C87D4E3CC


class FakeClock:
    """Manually advanced clock for expiry tests"""
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def session_factory() -> Generator:
    """In-memory SQLite database, fresh for every test"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def nonce_store(clock: FakeClock) -> NonceStore:
    return NonceStore(ttl_seconds=900, max_attempts=5, cleanup_interval_seconds=300, clock=clock)


@pytest.fixture
def auth_service(nonce_store: NonceStore, session_factory) -> AuthService:
    return AuthService(
        nonce_store=nonce_store,
        signature_verifier=SignatureVerifier(),
        identity_store=SqlIdentityStore(session_factory),
        token_issuer=build_token_issuer(),
    )


@pytest.fixture
def client(auth_service: AuthService, session_factory) -> TestClient:
    """Create a test client for the FastAPI application"""
    def override_get_db() -> Generator:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def stark_wallet():
    """Starknet key pair whose public key doubles as the account address"""
    public_key = private_to_stark_key(STARK_PRIVATE_KEY)
    address = WalletAddress.parse("0x%064x" % public_key, ChainFamily.STARKNET)

    def sign(typed_data: dict) -> list:
        message_hash = TypedData.from_dict(typed_data).message_hash(address.as_int())
        r, s = message_signature(message_hash, STARK_PRIVATE_KEY)
        return [hex(r), hex(s)]

    return SimpleNamespace(address=address, sign=sign)


@pytest.fixture
def evm_wallet():
    """Random EVM account signing personal messages"""
    account = Account.create()
    address = WalletAddress.parse(account.address, ChainFamily.EVM)

    def sign(text: str) -> str:
        signed = Account.sign_message(encode_defunct(text=text), private_key=account.key)
        return "0x" + bytes(signed.signature).hex()

    return SimpleNamespace(address=address, account=account, sign=sign)
