import logging

from fastapi import APIRouter, Depends

from app.adapters.backend_client import BackendClient
from app.api.deps import get_backend
from app.core.security import require_bearer
from app.schemas.requests import UpdateModelRequest

logger = logging.getLogger("API_Models")
router = APIRouter()


def is_configured(model: dict) -> bool:
    custom_url = model.get("custom_api_url") or ""
    return bool(model.get("enabled")) or bool(custom_url.strip())


@router.get("")
async def list_models(
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    """Only models the user has configured (enabled, or pointed at a custom URL)."""
    models = [m for m in await backend.list_models(token) if is_configured(m)]
    return {"models": models, "total_count": len(models)}


@router.get("/supported")
async def list_supported_models(backend: BackendClient = Depends(get_backend)):
    """Public: providers the backend can drive."""
    models = await backend.list_supported_models()
    return {"models": models, "total_count": len(models)}


@router.put("/{model_id}")
async def update_model(
    model_id: str,
    data: UpdateModelRequest,
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    logger.info(f"🔄 Updating AI model: {model_id}")
    await backend.upsert_models(token, {model_id: data.model_dump()})
    return {"success": True, "message": "AI model updated successfully"}
