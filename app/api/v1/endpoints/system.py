from fastapi import APIRouter, Depends

from app.adapters.backend_client import BackendClient
from app.api.deps import get_backend

router = APIRouter()


@router.get("/system-config")
async def get_system_config(backend: BackendClient = Depends(get_backend)):
    """Public backend configuration (registration mode, defaults) passed through as-is."""
    return await backend.get_system_config()
