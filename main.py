"""
PayGuard - webhook authentication gateway
FastAPI entry point exposing payment and messaging webhook verification
"""

from contextlib import asynccontextmanager
import os

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from payguard.api.webhooks import router as webhooks_router
from payguard.config.settings import get_settings
from payguard.utils.logger import log


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager with structured logging"""
    settings = get_settings()
    log.info(
        "Application starting up",
        extra={
            "event_type": "app_startup",
            "version": os.getenv("APP_VERSION", "0.1.0"),
            "environment": settings.environment,
            "encryption_configured": settings.encryption_key is not None,
            "meta_configured": settings.meta_app_secret is not None,
        },
    )
    if settings.encryption_key is None:
        log.warning(
            "ENCRYPTION_KEY not set; stored credentials cannot be opened",
            extra={"event_type": "app_startup_misconfigured"},
        )

    yield

    log.info("Application shutting down", extra={"event_type": "app_shutdown"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="PayGuard",
        description="Webhook signature verification and credential encryption",
        version=os.getenv("APP_VERSION", "0.1.0"),
        lifespan=lifespan,
    )
    app.include_router(webhooks_router)

    @app.get("/healthz")
    async def healthz():
        return JSONResponse({"ok": True, "status": "healthy"})

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
