from typing import ClassVar, Dict, List, Optional

from pydantic import AliasChoices, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Project Info ---
    APP_NAME: str = "TraderGate"
    ENV: str = "dev"  # dev, prod
    LOG_LEVEL: str = "INFO"

    # --- Upstream Trading Backend ---
    BACKEND_URL: str = Field(
        default="http://localhost:8080",
        validation_alias=AliasChoices("BACKEND_URL", "GO_API_URL"),
    )
    BACKEND_TIMEOUT_SECONDS: float = 10.0
    DASHBOARD_READ_TIMEOUT_SECONDS: float = 5.0

    # --- Provisioning Defaults ---
    DEFAULT_AI_PROVIDER: str = "deepseek"
    DEFAULT_VENUE: str = "hyperliquid"

    # --- Provisioning Secrets ---
    DEEPSEEK_API_KEY: Optional[str] = None
    AI_PROVIDER_API_KEYS: Dict[str, str] = {}

    # --- Venues ---
    WALLET_VENUES: List[str] = ["hyperliquid"]
    WALLET_TESTNET: bool = False

    # --- Read Side ---
    ENABLE_ESTIMATES: bool = True

    # --- Constants (Not loaded from .env) ---
    API_PREFIX: ClassVar[str] = "/api/v1"

    # --- Computed Fields ---
    @computed_field
    @property
    def BACKEND_BASE_URL(self) -> str:
        return self.BACKEND_URL.rstrip("/")

    def provider_secret_name(self, provider: str) -> str:
        return f"{provider.upper()}_API_KEY"

    def provider_secret(self, provider: str) -> Optional[str]:
        """Looks up the server-side API key used to create a model config."""
        key = self.AI_PROVIDER_API_KEYS.get(provider)
        if key:
            return key
        if provider == "deepseek":
            return self.DEEPSEEK_API_KEY or None
        return None

    # Pydantic V2 Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields in .env file
    )


settings = Settings()
