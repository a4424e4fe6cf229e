import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_leaderboard, get_portfolio
from app.core.errors import GatewayError
from app.services.leaderboard import LeaderboardAggregator
from app.services.portfolio import PortfolioAggregator

logger = logging.getLogger("API_Explorer")
router = APIRouter()


@router.get("/leaderboard")
async def get_leaderboard_view(leaderboard: LeaderboardAggregator = Depends(get_leaderboard)):
    """Public ranking, sorted by P&L descending. Fields under `estimated` are heuristics."""
    try:
        return await leaderboard.build_leaderboard()
    except GatewayError as e:
        logger.error(f"❌ Leaderboard unavailable: {e.message}")
        status_code = e.status_code if e.status_code >= 500 else 502
        return JSONResponse(
            status_code=status_code,
            content={
                "error": "Failed to fetch leaderboard data",
                "agents": [],
                "total_count": 0,
                "last_updated": datetime.now(timezone.utc).isoformat(),
            },
        )


@router.get("/positions")
async def get_explorer_positions(portfolio: PortfolioAggregator = Depends(get_portfolio)):
    return await portfolio.explorer_positions()
