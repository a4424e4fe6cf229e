from typing import Any, Dict, Optional

from pydantic import BaseModel


class ProvisioningResult(BaseModel):
    """
    Outcome of a successful trader creation.
    `needs_deposit` tells the caller to prompt the user to fund `wallet_address`.
    """

    trader: Dict[str, Any]
    ai_model_id: str
    exchange_id: str
    wallet_address: Optional[str] = None
    is_new_wallet: bool = False
    needs_deposit: bool = False

    @property
    def trader_id(self) -> Optional[str]:
        return self.trader.get("trader_id") or self.trader.get("id")
