from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Database (async SQLAlchemy URL; snapshot store for the engine state)
    DATABASE_URL: str = "sqlite+aiosqlite:///./marketplace.db"

    # Marketplace instantiation parameters, validated once at startup
    MARKETPLACE_ADDRESS: str = "stars1marketplace"
    MARKETPLACE_ADMIN: str = "stars1admin"
    NATIVE_DENOM: str = "ustars"
    TRADING_FEE_BPS: int = 200  # 2%
    MIN_ASK_EXPIRY: int = 86_400  # seconds
    MAX_ASK_EXPIRY: int = 15_552_000
    MIN_BID_EXPIRY: int = 86_400
    MAX_BID_EXPIRY: int = 15_552_000
    DEVELOPER_ADDRESS: str | None = None

    # App
    APP_NAME: str = "NFT Marketplace"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev


settings = Settings()
