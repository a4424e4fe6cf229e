from fastapi import APIRouter, Depends

from app.adapters.backend_client import BackendClient
from app.api.deps import get_backend
from app.core.security import require_bearer

router = APIRouter()

# Credentials never leave the gateway, even though the backend returns them
SECRET_FIELDS = ("api_key", "secret_key", "aster_private_key")


def mask_secrets(exchange: dict) -> dict:
    masked = dict(exchange)
    for field in SECRET_FIELDS:
        if masked.get(field):
            masked[field] = "***"
    return masked


@router.get("")
async def list_exchanges(
    token: str = Depends(require_bearer),
    backend: BackendClient = Depends(get_backend),
):
    exchanges = await backend.list_exchanges(token)
    return {"exchanges": [mask_secrets(e) for e in exchanges]}
