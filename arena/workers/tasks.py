"""
Task definitions for ARQ (Async Redis Queue).

The trade cycle runs as an arq cron job every CYCLE_INTERVAL_MINUTES.
Both the cron job and the HTTP trigger go through run_locked_cycle(),
so two cycles never overlap even across processes.
"""

import logging
from typing import Any, Optional

from arq import cron
from arq.connections import RedisSettings
from redis.asyncio import Redis

from ..core.config import get_settings
from ..core.errors import CycleInProgressError
from ..models.cycle import CycleSummary
from ..services.trade_cycle import TradeCycleOrchestrator
from .cycle_lock import CycleLock

logger = logging.getLogger(__name__)


async def run_locked_cycle(
    redis: Redis,
    orchestrator: Optional[TradeCycleOrchestrator] = None,
) -> CycleSummary:
    """
    Run one cycle while holding the cycle lock.

    Raises:
        CycleInProgressError: Another cycle holds the lock
    """
    async with CycleLock(redis):
        return await (orchestrator or TradeCycleOrchestrator()).run_cycle()


async def trade_cycle(ctx: dict) -> dict[str, Any]:
    """
    Cron entry point.

    Returns a compact result dict (arq stores it in Redis); the full
    market snapshot is left out.
    """
    try:
        summary = await run_locked_cycle(ctx["redis"], ctx.get("orchestrator"))
    except CycleInProgressError as e:
        logger.warning(f"Skipping scheduled cycle: {e.message}")
        return {"success": False, "error": e.message}

    return summary.model_dump(mode="json", exclude={"market_data"})


# ==================== Worker Startup/Shutdown ====================

async def startup(ctx: dict) -> None:
    """Worker startup hook - runs when worker starts."""
    settings = get_settings()
    logger.info(
        f"ARQ Worker starting up: trade cycle every {settings.cycle_interval_minutes} min"
    )
    ctx["orchestrator"] = TradeCycleOrchestrator()


async def shutdown(ctx: dict) -> None:
    """Worker shutdown hook - runs when worker stops."""
    from ..db.database import close_db

    logger.info("ARQ Worker shutting down...")
    await close_db()


# ==================== Worker Settings ====================

def _cycle_minutes() -> set[int]:
    interval = max(1, get_settings().cycle_interval_minutes)
    return set(range(0, 60, interval))


def get_redis_settings() -> RedisSettings:
    """Get Redis settings from application config."""
    return RedisSettings.from_dsn(str(get_settings().redis_url))


class WorkerSettings:
    """ARQ Worker Settings class for CLI."""

    functions = [trade_cycle]
    cron_jobs = [
        cron(
            trade_cycle,
            minute=_cycle_minutes(),
            unique=True,
            timeout=get_settings().cycle_lock_ttl_seconds,
            max_tries=1,
        ),
    ]

    on_startup = startup
    on_shutdown = shutdown

    max_jobs = 1
    job_timeout = get_settings().cycle_lock_ttl_seconds
    health_check_interval = 30
    queue_name = "arena:tasks"
    redis_settings = get_redis_settings()
