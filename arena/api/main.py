"""
FastAPI application.

Read-only views of the arena (leaderboard, trader detail), the manual
cycle trigger and the monitoring endpoints. The scheduled cycles run in
the arq worker (run_worker.py), not in this process.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from starlette.responses import Response

from ..core.config import get_settings
from ..core.logging_config import setup_logging
from ..db.database import close_db, init_db
from ..monitoring.metrics import get_metrics_collector
from .routes import cycle, leaderboard, metrics, system

setup_logging("api")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version} ({settings.environment}), "
        f"decisions={'simulated' if settings.simulate_decisions else 'openrouter'}"
    )

    # Development convenience; deployments run alembic
    if settings.is_debug:
        try:
            await init_db()
            logger.info("Database: tables ensured")
        except Exception as e:
            logger.error(f"Database: initialization failed - {e}")

    # The manual trigger shares the worker's cycle lock through this client
    app.state.redis = Redis.from_url(str(settings.redis_url), decode_responses=True)
    try:
        await app.state.redis.ping()
        logger.info("Redis: connected")
    except Exception as e:
        logger.error(f"Redis: unreachable, manual cycles will fail - {e}")

    get_metrics_collector().set_app_info(settings.app_version, settings.environment)

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await app.state.redis.aclose()
    await close_db()


def create_app() -> FastAPI:
    settings = get_settings()
    docs_enabled = settings.is_debug

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="LLM traders competing on a simulated spot ledger",
        lifespan=lifespan,
        docs_url="/api/v1/docs" if docs_enabled else None,
        redoc_url="/api/v1/redoc" if docs_enabled else None,
        openapi_url="/api/v1/openapi.json" if docs_enabled else None,
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # Added last so it wraps everything else
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )

    app.include_router(cycle.router, prefix="/api/v1")
    app.include_router(leaderboard.router, prefix="/api/v1")
    app.include_router(metrics.router)
    app.include_router(system.router)

    return app


app = create_app()
