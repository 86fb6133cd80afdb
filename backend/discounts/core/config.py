from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Checkout Discounts API"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/discounts.db"
    LOG_LEVEL: str = "INFO"

    # Storefront currency, amounts are held in its minor unit
    CURRENCY: str = "GBP"

    # Credit granted by free delivery promotions when the session has no delivery fee
    STANDARD_DELIVERY_FEE_CENTS: int = 299

    # Fixed amount discounts never exceed the subtotal when enabled
    CLAMP_FIXED_DISCOUNTS_TO_SUBTOTAL: bool = True

    # Remote catalog service; the SQL catalog is used when the URL is empty
    CATALOG_API_URL: str = ""
    CATALOG_API_KEY: str = ""
    CATALOG_TIMEOUT_SECONDS: float = 10.0

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def remote_catalog_enabled(self) -> bool:
        return bool(self.CATALOG_API_URL)


settings = Settings()
