import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.adapters.backend_client import BackendClient, backend_client
from app.core.executors import gather_guarded, run_guarded
from app.core.settings import Settings, settings
from app.services.dashboard import as_float, round2

logger = logging.getLogger("Portfolio")

_QUOTE_SUFFIXES = ("USDT", "PERP", "USD")


def asset_name(symbol: str) -> str:
    """BTCUSDT -> BTC, ETH-PERP -> ETH."""
    asset = (symbol or "").split("-")[0]
    for suffix in _QUOTE_SUFFIXES:
        if asset.endswith(suffix) and len(asset) > len(suffix):
            return asset[: -len(suffix)]
    return asset


def parse_assets(trading_symbols: Any) -> List[str]:
    if isinstance(trading_symbols, list):
        symbols = trading_symbols
    else:
        symbols = str(trading_symbols or "").split(",")
    return [asset_name(s.strip()) for s in symbols if s and s.strip()]


def to_position(trader_id: str, pos: Dict[str, Any]) -> Dict[str, Any]:
    side = str(pos.get("side") or "").upper()
    entry_price = as_float(pos.get("entry_price"))
    return {
        "id": f"{trader_id}-{pos.get('symbol') or 'UNKNOWN'}",
        "trader_id": trader_id,
        "symbol": pos.get("symbol") or "UNKNOWN",
        "type": "short" if side in ("SELL", "SHORT") else "long",
        "leverage": as_float(pos.get("leverage"), 1.0) or 1.0,
        "entry_price": entry_price,
        "current_price": as_float(pos.get("mark_price")) or entry_price,
        "quantity": as_float(pos.get("quantity", pos.get("position_amt"))),
        "stop_loss": pos.get("stop_loss"),
        "take_profit": pos.get("take_profit"),
        "pnl": as_float(pos.get("unrealized_pnl")),
        "pnl_percent": as_float(pos.get("unrealized_pnl_pct")),
        "status": "open",
    }


def position_stats(positions: List[Dict[str, Any]]) -> Dict[str, float]:
    count = len(positions)
    return {
        "total_value": round2(sum(abs(p["quantity"] * p["current_price"]) for p in positions)),
        "total_pnl": round2(sum(p["pnl"] for p in positions)),
        "avg_leverage": round2(sum(p["leverage"] for p in positions) / count) if count else 0.0,
    }


class PortfolioAggregator:
    """Multi-trader folds: the user's agent list and a combined positions book."""

    def __init__(self, client: Optional[BackendClient] = None, config: Optional[Settings] = None):
        self.client = client or backend_client
        self.config = config or settings

    async def _agent_summary(self, token: str, trader: Dict[str, Any]) -> Dict[str, Any]:
        trader_id = str(trader.get("trader_id") or trader.get("id") or "")
        timeout = self.config.DASHBOARD_READ_TIMEOUT_SECONDS

        reads = await gather_guarded(
            {
                "config": self.client.get_trader_config(token, trader_id),
                "account": self.client.get_account(token, trader_id),
            },
            timeout=timeout,
        )
        config = reads["config"].value if reads["config"].ok and isinstance(reads["config"].value, dict) else {}
        account = reads["account"].value if reads["account"].ok and isinstance(reads["account"].value, dict) else {}

        model = trader.get("ai_model") or "AI"
        exchange = trader.get("exchange_id") or "exchange"
        return {
            "id": trader_id,
            "name": trader.get("trader_name") or "Unnamed Trader",
            "description": f"{model} trading on {exchange}",
            "status": "active" if trader.get("is_running") is True else "paused",
            "deposit": as_float(trader.get("initial_balance")),
            "assets": parse_assets(config.get("trading_symbols")),
            "pnl": round2(as_float(account.get("total_pnl"))),
            "pnl_percent": round2(as_float(account.get("total_pnl_pct"))),
            "position_count": int(as_float(account.get("position_count"))),
            "live_data": reads["account"].ok,
        }

    async def list_agents(self, token: str) -> Dict[str, Any]:
        traders = await self.client.list_my_traders(token)
        logger.info(f"📋 Building summaries for {len(traders)} traders")

        agents = list(await asyncio.gather(*(self._agent_summary(token, t) for t in traders)))

        total_capital = sum(a["deposit"] for a in agents)
        total_pnl = sum(a["pnl"] for a in agents)
        return {
            "agents": agents,
            "total_count": len(agents),
            "active_count": sum(1 for a in agents if a["status"] == "active"),
            "metrics": {
                "total_capital": round2(total_capital),
                "total_pnl": round2(total_pnl),
                "current_equity": round2(total_capital + total_pnl),
                "pnl_percent": round2(total_pnl / total_capital * 100) if total_capital > 0 else 0.0,
            },
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }

    async def collect_positions(self, token: str, trader_ids: List[str]) -> Dict[str, Any]:
        trader_ids = [t.strip() for t in trader_ids if t and t.strip()]
        if not trader_ids:
            return {
                "positions": [],
                "total_count": 0,
                "stats": position_stats([]),
                "message": "No trader IDs provided",
                "last_updated": datetime.now(timezone.utc).isoformat(),
            }

        timeout = self.config.DASHBOARD_READ_TIMEOUT_SECONDS
        results = await asyncio.gather(
            *(run_guarded(f"positions:{t}", self.client.get_positions(token, t), timeout) for t in trader_ids)
        )

        positions: List[Dict[str, Any]] = []
        unavailable: List[str] = []
        for trader_id, result in zip(trader_ids, results):
            if not result.ok:
                unavailable.append(trader_id)
                continue
            if isinstance(result.value, list):
                positions.extend(to_position(trader_id, p) for p in result.value if isinstance(p, dict))

        return {
            "positions": positions,
            "total_count": len(positions),
            "stats": position_stats(positions),
            "unavailable_traders": unavailable,
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }

    async def explorer_positions(self) -> Dict[str, Any]:
        """Public book across all traders. An absent upstream endpoint yields an empty book."""
        result = await run_guarded("positions:all", self.client.get_all_positions(), self.config.DASHBOARD_READ_TIMEOUT_SECONDS)
        raw = result.value.get("positions") if result.ok and isinstance(result.value, dict) else None

        response: Dict[str, Any] = {"last_updated": datetime.now(timezone.utc).isoformat()}
        if not isinstance(raw, list):
            response.update(
                {
                    "positions": [],
                    "total_count": 0,
                    "stats": position_stats([]),
                    "message": "Positions data is not available from the trading backend yet.",
                }
            )
            return response

        positions = []
        for pos in raw:
            if not isinstance(pos, dict):
                continue
            entry = to_position(str(pos.get("trader_id") or ""), pos)
            entry["trader_name"] = pos.get("trader_name")
            entry["asset"] = asset_name(entry["symbol"])
            positions.append(entry)

        response.update({"positions": positions, "total_count": len(positions), "stats": position_stats(positions)})
        return response


# Global Instance
portfolio_aggregator = PortfolioAggregator()
