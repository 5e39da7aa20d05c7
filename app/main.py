"""
Polarad Analytics - FastAPI Application Entry Point
"""
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import dispose_engines
from app.api.v1 import api_router, health_router
from app.services.fact_store import FactStoreError


def log(message: str):
    print(f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}] {message}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    log(f"🚀 Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    log(f"📍 Environment: {settings.ENVIRONMENT}")
    log(f"💱 USD->KRW rate: {settings.USD_TO_KRW_RATE}")

    if settings.SCHEDULER_ENABLED:
        from app.tasks.scheduler import start_scheduler
        start_scheduler()
        log(f"⏰ Scheduler started (Meta collection daily at "
            f"{settings.META_COLLECT_HOUR:02d}:{settings.META_COLLECT_MINUTE:02d} {settings.SCHEDULER_TIMEZONE})")

    yield

    # Shutdown
    if settings.SCHEDULER_ENABLED:
        from app.tasks.scheduler import stop_scheduler
        stop_scheduler()
        log("⏰ Scheduler stopped")

    await dispose_engines()
    log(f"👋 Shutting down {settings.APP_NAME}")


async def fact_store_error_handler(request: Request, exc: FactStoreError):
    """Store failures that escape a router (e.g. raised inside a dependency)"""
    log(f"[DB ERROR] {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": f"Database error: {exc}"})


def create_app() -> FastAPI:
    """Create FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Meta + Naver ad performance analytics: period rollups, KPI summaries and channel comparison",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_exception_handler(FactStoreError, fact_store_error_handler)

    # /api/v1/... reports and ingestion, /health... at the root
    app.include_router(api_router)
    app.include_router(health_router)

    return app


# Create app instance
app = create_app()
