from fastapi import APIRouter

from app.api.v1.endpoints import exchanges, explorer, health, models, positions, prompts, system, traders

api_router = APIRouter()

# 1. System (Health, public config)
api_router.include_router(health.router, tags=["System"])
api_router.include_router(system.router, tags=["System"])

# 2. Traders (Provisioning, Lifecycle, Dashboard)
api_router.include_router(traders.router, prefix="/traders", tags=["Traders"])

# 3. Account Resources
api_router.include_router(models.router, prefix="/models", tags=["Models"])
api_router.include_router(exchanges.router, prefix="/exchanges", tags=["Exchanges"])
api_router.include_router(positions.router, prefix="/positions", tags=["Positions"])
api_router.include_router(prompts.router, prefix="/prompt-templates", tags=["Prompts"])

# 4. Public Explorer
api_router.include_router(explorer.router, prefix="/explorer", tags=["Explorer"])
