import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.adapters.backend_client import backend_client
from app.api.v1.router import api_router
from app.core.errors import GatewayError
from app.core.logger import setup_logging
from app.core.settings import settings

# Setup Logging
setup_logging()
logger = logging.getLogger("API")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application Lifecycle Management.

    Startup: report the upstream the gateway will talk to
    Shutdown: close the pooled upstream connections
    """
    # --- STARTUP ---
    logger.info(f"🌐 {settings.APP_NAME} Starting... upstream={backend_client.base_url}")
    if not settings.provider_secret(settings.DEFAULT_AI_PROVIDER):
        logger.warning(
            f"⚠️ {settings.provider_secret_name(settings.DEFAULT_AI_PROVIDER)} not set. "
            f"Trader creation fails for users without an existing '{settings.DEFAULT_AI_PROVIDER}' model."
        )

    yield  # Application runs here

    # --- SHUTDOWN ---
    logger.info("🛑 API Stopping... closing upstream connections.")
    await backend_client.aclose()
    logger.info("✅ Shutdown Complete.")


# Initialize App
app = FastAPI(
    title=settings.APP_NAME,
    description="Trader provisioning and dashboard gateway",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


# Include the V1 Router
app.include_router(api_router, prefix=settings.API_PREFIX)

if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
