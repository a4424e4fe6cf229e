import logging
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("RequestSchema")


def normalise_symbols(value: Any) -> List[str]:
    """Accepts "BTCUSDT,ETHUSDT" or a list; upper-cases and drops duplicates keeping order."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")

    seen: Dict[str, None] = {}
    for raw in value:
        symbol = str(raw).strip().upper()
        if symbol:
            seen.setdefault(symbol, None)
    return list(seen)


class TraderSettings(BaseModel):
    """Strategy parameters passed through to the backend untouched."""

    initial_balance: float = Field(default=1000.0, gt=0, description="Starting capital in USDT")
    scan_interval_minutes: int = Field(default=3, ge=3, le=60, description="Minutes between AI decisions")
    btc_eth_leverage: int = Field(default=5, ge=1, le=50)
    altcoin_leverage: int = Field(default=5, ge=1, le=20)
    trading_symbols: List[str] = Field(default_factory=list, description="Ordered set of tickers")
    custom_prompt: str = ""
    override_base_prompt: bool = False  # False = append to base prompt, True = replace it
    system_prompt_template: str = "default"
    is_cross_margin: bool = True
    use_coin_pool: bool = False
    use_oi_top: bool = False

    @field_validator("trading_symbols", mode="before")
    @classmethod
    def validate_symbols(cls, v: Any) -> List[str]:
        return normalise_symbols(v)

    def to_payload(self, name: str, ai_model_id: str, exchange_id: str) -> Dict[str, Any]:
        """Builds the upstream create/update body. Symbols go over the wire comma-separated."""
        return {
            "name": name,
            "ai_model_id": ai_model_id,
            "exchange_id": exchange_id,
            "initial_balance": self.initial_balance,
            "scan_interval_minutes": self.scan_interval_minutes,
            "btc_eth_leverage": self.btc_eth_leverage,
            "altcoin_leverage": self.altcoin_leverage,
            "trading_symbols": ",".join(self.trading_symbols),
            "custom_prompt": self.custom_prompt,
            "override_base_prompt": self.override_base_prompt,
            "system_prompt_template": self.system_prompt_template,
            "is_cross_margin": self.is_cross_margin,
            "use_coin_pool": self.use_coin_pool,
            "use_oi_top": self.use_oi_top,
        }


class CreateTraderRequest(TraderSettings):
    """
    Logical identities only: `ai_provider` is a vendor name ("deepseek") and
    `venue` an exchange name ("hyperliquid"). The provisioner turns them into
    backend ids. The legacy field names `ai_model_id` / `exchange_id` are accepted.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    ai_provider: Optional[str] = Field(default=None, validation_alias=AliasChoices("ai_provider", "ai_model_id"))
    venue: Optional[str] = Field(default=None, validation_alias=AliasChoices("venue", "exchange_id"))

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Trader name cannot be blank")
        return v


class UpdateTraderRequest(BaseModel):
    """
    Partial body; the backend only accepts the full field set, so the route
    merges this over the trader's current configuration. Fields left out keep
    their live values. Ids here are backend ids, not provider names.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    ai_model_id: Optional[str] = Field(default=None, min_length=1)
    exchange_id: Optional[str] = Field(default=None, min_length=1)
    initial_balance: Optional[float] = Field(default=None, gt=0)
    scan_interval_minutes: Optional[int] = Field(default=None, ge=3, le=60)
    btc_eth_leverage: Optional[int] = Field(default=None, ge=1, le=50)
    altcoin_leverage: Optional[int] = Field(default=None, ge=1, le=20)
    trading_symbols: Optional[List[str]] = None
    custom_prompt: Optional[str] = None
    override_base_prompt: Optional[bool] = None
    system_prompt_template: Optional[str] = None
    is_cross_margin: Optional[bool] = None
    use_coin_pool: Optional[bool] = None
    use_oi_top: Optional[bool] = None

    @field_validator("trading_symbols", mode="before")
    @classmethod
    def validate_symbols(cls, v: Any) -> Optional[List[str]]:
        return None if v is None else normalise_symbols(v)

    def to_upstream(self, current: Dict[str, Any]) -> Dict[str, Any]:
        # Defaults only fill keys the backend config does not report
        payload = TraderSettings().to_payload(
            current.get("trader_name") or current.get("name"),
            current.get("ai_model_id") or current.get("ai_model"),
            current.get("exchange_id"),
        )
        for key in TraderSettings.model_fields:
            if current.get(key) is not None:
                payload[key] = current[key]

        payload.update(self.model_dump(exclude_none=True))

        symbols = payload.get("trading_symbols")
        if isinstance(symbols, list):
            payload["trading_symbols"] = ",".join(symbols)
        return payload


class UpdateModelRequest(BaseModel):
    enabled: bool = True
    api_key: str = ""
    custom_api_url: str = ""
    custom_model_name: str = ""


class UpdatePromptRequest(BaseModel):
    custom_prompt: str = Field(..., max_length=20000)
    override_base_prompt: Optional[bool] = None  # left out keeps the trader's current mode

    def to_upstream(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
