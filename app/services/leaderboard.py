import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.adapters.backend_client import BackendClient, backend_client
from app.core.settings import Settings, settings
from app.services import estimates
from app.services.dashboard import as_float, round2

logger = logging.getLogger("Leaderboard")

MODEL_ICONS = {
    "deepseek": "🤖",
    "claude": "🧠",
    "gpt": "🎯",
    "gemini": "✨",
    "openai": "🎯",
    "anthropic": "🧠",
    "qwen": "🐉",
}
DEFAULT_ICON = "🤖"

_POSSESSIVE_RE = re.compile(r"^([^']+)'s")
_DASH_RE = re.compile(r"^([^-]+)\s*-")


def parse_owner(name: str) -> str:
    """Reads the owner out of "Alice's Bot" or "Alice - Bot"."""
    match = _POSSESSIVE_RE.match(name or "")
    if match:
        return match.group(1)
    match = _DASH_RE.match(name or "")
    if match:
        return match.group(1).strip()
    return "Anonymous"


def model_icon(model: Optional[str]) -> str:
    lowered = (model or "").lower()
    for key, icon in MODEL_ICONS.items():
        if key in lowered:
            return icon
    return DEFAULT_ICON


def rank_by_pnl(agents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # sorted() is stable under reverse=True, so ties keep upstream order
    return sorted(agents, key=lambda a: a["pnl"], reverse=True)


def to_leaderboard_entry(trader: Dict[str, Any]) -> Dict[str, Any]:
    name = trader.get("trader_name") or ""
    return {
        "id": trader.get("trader_id"),
        "name": name,
        "owner": parse_owner(name),
        "model": trader.get("ai_model"),
        "pnl": round2(as_float(trader.get("total_pnl"))),
        "roi": round2(as_float(trader.get("total_pnl_pct"))),
        "equity": round2(as_float(trader.get("total_equity"))),
        "position_count": int(as_float(trader.get("position_count"))),
        "is_running": bool(trader.get("is_running", False)),
        "icon": model_icon(trader.get("ai_model")),
    }


class LeaderboardAggregator:
    """Public ranking of every competing trader, best P&L first."""

    def __init__(self, client: Optional[BackendClient] = None, config: Optional[Settings] = None):
        self.client = client or backend_client
        self.config = config or settings

    async def build_leaderboard(self) -> Dict[str, Any]:
        data = await self.client.get_competition()
        traders = data.get("traders") if isinstance(data, dict) else data
        if not isinstance(traders, list):
            traders = []

        agents = rank_by_pnl([to_leaderboard_entry(t) for t in traders if isinstance(t, dict)])

        if self.config.ENABLE_ESTIMATES:
            for agent in agents:
                agent["estimated"] = estimates.estimated_fields(agent["roi"], agent["equity"], agent["position_count"])

        logger.info(f"🏆 Leaderboard built with {len(agents)} traders")
        return {
            "agents": agents,
            "total_count": len(agents),
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }


# Global Instance
leaderboard_aggregator = LeaderboardAggregator()
