from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "TrimTime"
    DATABASE_URL: str = "sqlite+pysqlite:///./trimtime.db"
    DEFAULT_SHOP_NAME: str = "TrimTime Barbers"
    DEFAULT_CURRENCY: str = "$"
    DEFAULT_TAX_RATE: float = 0.0
    DEFAULT_TAX_TYPE: str = "excluded"
    DEFAULT_RECEIPT_FOOTER: str = "See you next time!"
    SEED_DEFAULT_CATALOG: bool = True
    CLAMP_DISCOUNT_TO_SUBTOTAL: bool = True
    SCAN_COOLDOWN_SECONDS: float = 1.5
    KEYSTROKE_GAP_MS: int = 50
    SESSION_TTL_MINUTES: int = 60
    SESSION_REMEMBER_DAYS: int = 30
    SESSION_CHECK_INTERVAL_SECONDS: int = 60
    SHELL_CACHE_NAME: str = "trimtime-v1"
    SHELL_CACHE_DIR: str = "./shell_cache"
    SHELL_URLS: list[str] = ["/", "/index.html", "/manifest.json"]


settings = Settings()
