import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.adapters.backend_client import BackendClient, backend_client
from app.core.errors import BackendError, TraderNotFound
from app.core.executors import gather_guarded
from app.core.settings import Settings, settings

logger = logging.getLogger("Dashboard")

SECTIONS = ("account", "positions", "equity_history", "performance", "statistics")
LIST_SECTIONS = ("positions", "equity_history")


def as_float(value: Any, default: float = 0.0) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def round2(value: float) -> float:
    return round(value, 2)


def position_notional(position: Dict[str, Any]) -> float:
    qty = position.get("quantity")
    if qty is None:
        qty = position.get("position_amt")
    return abs(as_float(qty) * as_float(position.get("mark_price")))


def compute_metrics(
    initial_balance: float, account: Optional[Dict[str, Any]], positions: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Equity comes from the account snapshot; without one it falls back to the
    configured initial balance, so P&L reads 0 rather than -100%.
    """
    current_equity = initial_balance
    if isinstance(account, dict):
        for key in ("total_wallet_balance", "total_equity"):
            if account.get(key) is not None:
                current_equity = as_float(account[key], initial_balance)
                break

    total_pnl = current_equity - initial_balance
    total_pnl_percent = (total_pnl / initial_balance) * 100 if initial_balance > 0 else 0.0

    return {
        "current_equity": round2(current_equity),
        "initial_balance": round2(initial_balance),
        "total_pnl": round2(total_pnl),
        "total_pnl_percent": round2(total_pnl_percent),
        "open_positions_count": len(positions),
        "total_position_value": round2(sum(position_notional(p) for p in positions)),
    }


def _trader_config_view(trader_id: str, config: Dict[str, Any], initial_balance: float) -> Dict[str, Any]:
    symbols = config.get("trading_symbols") or ""
    if isinstance(symbols, list):
        symbols = ",".join(symbols)

    return {
        "id": config.get("trader_id") or config.get("id") or trader_id,
        "name": config.get("trader_name") or config.get("name"),
        "is_running": bool(config.get("is_running", False)),
        "ai_model": {
            "id": config.get("ai_model_id") or config.get("ai_model"),
            "provider": config.get("ai_provider"),
            "custom_api_url": config.get("custom_api_url") or None,
            "custom_model_name": config.get("custom_model_name") or None,
        },
        "exchange": {
            "id": config.get("exchange_id"),
            "type": config.get("exchange_type"),
            "testnet": bool(config.get("exchange_testnet", False)),
        },
        "trading": {
            "scan_interval_minutes": config.get("scan_interval_minutes"),
            "trading_symbols": symbols,
            "use_coin_pool": bool(config.get("use_coin_pool", False)),
            "use_oi_top": bool(config.get("use_oi_top", False)),
            "is_cross_margin": config.get("is_cross_margin"),
        },
        "leverage": {
            "btc_eth": config.get("btc_eth_leverage"),
            "altcoin": config.get("altcoin_leverage"),
        },
        "initial_balance": initial_balance,
    }


class DashboardAggregator:
    """
    Folds a trader's configuration and five live reads into one view.

    The config read is authoritative: an unknown trader is a 404. The live reads
    run concurrently, each with its own timeout, and a failed one only blanks
    its own section.
    """

    def __init__(self, client: Optional[BackendClient] = None, config: Optional[Settings] = None):
        self.client = client or backend_client
        self.config = config or settings

    async def load_trader_config(self, token: str, trader_id: str) -> Dict[str, Any]:
        try:
            config = await self.client.get_trader_config(token, trader_id)
        except BackendError as e:
            if e.status == 404:
                logger.warning(f"[Dashboard] Trader not found: {trader_id}")
                raise TraderNotFound(trader_id) from e
            raise
        if not isinstance(config, dict) or not config:
            raise TraderNotFound(trader_id)
        return config

    async def fetch_live(self, token: Optional[str], trader_id: str) -> Dict[str, Any]:
        timeout = self.config.DASHBOARD_READ_TIMEOUT_SECONDS
        results = await gather_guarded(
            {
                "account": self.client.get_account(token, trader_id),
                "positions": self.client.get_positions(token, trader_id),
                "equity_history": self.client.get_equity_history(token, trader_id),
                "performance": self.client.get_performance(token, trader_id),
                "statistics": self.client.get_statistics(token, trader_id),
            },
            timeout=timeout,
        )

        live: Dict[str, Any] = {}
        availability: Dict[str, bool] = {}
        for section in SECTIONS:
            result = results[section]
            value = result.value if result.ok else None
            if section in LIST_SECTIONS:
                if not isinstance(value, list):
                    value = None
                live[section] = value if value is not None else []
            else:
                live[section] = value if isinstance(value, dict) else None
            availability[section] = result.ok and (value is not None)
        return {"live": live, "availability": availability}

    async def build_dashboard(self, token: str, trader_id: str) -> Dict[str, Any]:
        logger.info(f"[Dashboard] Fetching data for trader: {trader_id}")

        config = await self.load_trader_config(token, trader_id)
        initial_balance = as_float(config.get("initial_balance"))

        fetched = await self.fetch_live(token, trader_id)
        live, availability = fetched["live"], fetched["availability"]

        metrics = compute_metrics(initial_balance, live["account"], live["positions"])
        performance = live["performance"] or {}
        metrics.update(
            {
                "win_rate": performance.get("win_rate"),
                "total_trades": performance.get("total_trades"),
                "sharpe_ratio": performance.get("sharpe_ratio"),
                "max_drawdown": performance.get("max_drawdown"),
            }
        )

        partial = not all(availability.values())
        if partial:
            missing = [s for s, ok in availability.items() if not ok]
            logger.warning(f"[Dashboard] Partial data for trader {trader_id}: missing {missing}", extra={"trader_id": trader_id})

        return {
            "success": True,
            "config": _trader_config_view(trader_id, config, initial_balance),
            "live": live,
            "metrics": metrics,
            "metadata": {
                "last_updated": datetime.now(timezone.utc).isoformat(),
                "data_availability": availability,
                "partial": partial,
            },
        }


# Global Instance
dashboard_aggregator = DashboardAggregator()
