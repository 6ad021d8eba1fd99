from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv(override=True)

class Settings(BaseSettings):
    PROJECT_NAME: str = "MusicStrk"
    # Application settings
    PORT: int = 8000
    HOST: str = "127.0.0.1"
    VERSION: str = "1.0.0"
    DOC_PASSWORD: str | None = None
    CORS_ORIGINS: List[str] = ["*"]

    # SSL settings
    SSL_KEY: str | None = None
    SSL_CERT: str | None = None

    # SQLAlchemy database URL
    DATABASE_URL: str = "sqlite:///./musicstrk.db"

    # Login configuration
    ENCODE_KEY: str | None = None
    ENCODE_ALGORITHM: str = "HS512"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 24 * 3600 # 24 hours
    TOKEN_ISSUER: str = "MusicStrk"
    TOKEN_AUDIENCE: str = "MusicStrk-API-v1"

    # Wallet challenge settings
    NONCE_EXPIRY_SECONDS: int = 15 * 60 # 15 minutes
    NONCE_MAX_ATTEMPTS: int = 5
    NONCE_CLEANUP_INTERVAL_SECONDS: int = 5 * 60 # 5 minutes

    # Challenge message, must match what the wallets are asked to sign
    AUTH_DOMAIN_NAME: str = "MusicStrk"
    AUTH_DOMAIN_VERSION: str = "1.0.2"
    AUTH_STATEMENT: str = "MusicStrk Authentication"
    STARKNET_CHAIN_ID: str = "SN_SEPOLIA"
    EVM_CHAIN_ID: int = 1

    # Debug settings
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

# Instantiate the settings
settings = Settings()
