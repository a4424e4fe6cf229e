from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_portfolio
from app.core.security import require_bearer
from app.services.portfolio import PortfolioAggregator

router = APIRouter()


@router.get("")
async def get_positions(
    trader_ids: Optional[str] = Query(default=None, description="Comma-separated trader ids"),
    token: str = Depends(require_bearer),
    portfolio: PortfolioAggregator = Depends(get_portfolio),
):
    """Open positions across several traders. A trader whose read fails is listed in `unavailable_traders`."""
    ids = trader_ids.split(",") if trader_ids else []
    return await portfolio.collect_positions(token, ids)
