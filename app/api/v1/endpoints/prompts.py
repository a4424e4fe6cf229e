from fastapi import APIRouter, Depends

from app.adapters.backend_client import BackendClient
from app.api.deps import get_backend

router = APIRouter()


@router.get("")
async def list_prompt_templates(backend: BackendClient = Depends(get_backend)):
    """Public: the names accepted as `system_prompt_template` when creating a trader."""
    return await backend.list_prompt_templates()


@router.get("/{name}")
async def get_prompt_template(name: str, backend: BackendClient = Depends(get_backend)):
    return await backend.get_prompt_template(name)
