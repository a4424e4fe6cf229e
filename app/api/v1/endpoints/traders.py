import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.adapters.backend_client import BackendClient
from app.api.deps import get_backend, get_dashboard, get_portfolio, get_provisioner
from app.core.security import require_bearer
from app.schemas.requests import CreateTraderRequest, UpdatePromptRequest, UpdateTraderRequest
from app.services.dashboard import DashboardAggregator
from app.services.portfolio import PortfolioAggregator
from app.services.provisioning import TraderProvisioner

logger = logging.getLogger("API_Traders")
router = APIRouter()


@router.post("")
async def create_trader(
    data: CreateTraderRequest,
    token: str = Depends(require_bearer),
    provisioner: TraderProvisioner = Depends(get_provisioner),
):
    """
    🟢 CREATE TRADER.
    Resolves the AI model, provisions the exchange (fresh wallet on wallet venues),
    then creates the trader. When `needs_deposit` is true the user must fund
    `wallet_address` before the trader can open positions.
    """
    result = await provisioner.create_trader(token, data)

    message = "Trader created successfully"
    if result.needs_deposit:
        message += f". Deposit funds to {result.wallet_address} to start trading."

    return {
        "success": True,
        "trader": result.trader,
        "ai_model_id": result.ai_model_id,
        "exchange_id": result.exchange_id,
        "wallet_address": result.wallet_address,
        "is_new_wallet": result.is_new_wallet,
        "needs_deposit": result.needs_deposit,
        "message": message,
    }


@router.get("")
async def list_traders(
    token: str = Depends(require_bearer),
    portfolio: PortfolioAggregator = Depends(get_portfolio),
):
    return await portfolio.list_agents(token)


@router.get("/{trader_id}/config")
async def get_trader_config(
    trader_id: str,
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    return await backend.get_trader_config(token, trader_id)


@router.put("/{trader_id}")
async def update_trader(
    trader_id: str,
    data: UpdateTraderRequest,
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
    dashboard: DashboardAggregator = Depends(get_dashboard),
):
    """
    Full-field update: every strategy parameter is resent. Fields missing from
    the body are filled from the trader's current configuration.
    """
    logger.info(f"🔄 Updating trader {trader_id}...")
    current = await dashboard.load_trader_config(token, trader_id)
    trader = await backend.update_trader(token, trader_id, data.to_upstream(current))
    return {"success": True, "trader": trader, "message": "Trader updated successfully"}


@router.put("/{trader_id}/prompt")
async def update_trader_prompt(
    trader_id: str,
    data: UpdatePromptRequest,
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    """Replaces only the custom prompt; the rest of the strategy is untouched."""
    logger.info(f"🔄 Updating prompt for trader {trader_id}...")
    result = await backend.update_trader_prompt(token, trader_id, data.to_upstream())
    logger.info(f"✅ Prompt updated for trader {trader_id}")
    return {"success": True, "message": "Prompt updated successfully", "data": result}


@router.delete("/{trader_id}")
async def delete_trader(
    trader_id: str,
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    logger.info(f"🗑️ Deleting trader {trader_id}...")
    data = await backend.delete_trader(token, trader_id)
    return {"success": True, "message": "Trader deleted successfully", "data": data}


@router.post("/{trader_id}/start")
async def start_trader(
    trader_id: str,
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    """🟢 Stopped -> Running."""
    result = await backend.start_trader(token, trader_id)
    logger.info(f"🟢 Trader {trader_id} started")
    return {"success": True, "is_running": True, "message": "Trader started successfully", "data": result}


@router.post("/{trader_id}/stop")
async def stop_trader(
    trader_id: str,
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    """
    🔴 Running -> Stopped.
    Does NOT close open positions: they stay open until closed separately or
    until a stop-loss / take-profit fires on the backend.
    """
    result = await backend.stop_trader(token, trader_id)
    logger.info(f"🔴 Trader {trader_id} stopped")
    return {
        "success": True,
        "is_running": False,
        "message": "Trader stopped. Open positions remain open until closed or their SL/TP triggers.",
        "data": result,
    }


@router.get("/{trader_id}/dashboard")
async def get_trader_dashboard(
    trader_id: str,
    token: str = Depends(require_bearer),
    dashboard: DashboardAggregator = Depends(get_dashboard),
):
    """200 when every live section loaded, 206 when some are missing, 404 for an unknown trader."""
    view = await dashboard.build_dashboard(token, trader_id)
    status_code = 206 if view["metadata"]["partial"] else 200
    return JSONResponse(content=view, status_code=status_code)


@router.get("/{trader_id}/decisions")
async def get_decisions(
    trader_id: str,
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    return await backend.get_decisions(token, trader_id)


@router.get("/{trader_id}/decisions/latest")
async def get_latest_decisions(
    trader_id: str,
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    return await backend.get_latest_decisions(token, trader_id)
