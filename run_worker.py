#!/usr/bin/env python
"""
Cycle worker.

Runs the arq worker whose cron job executes one trade cycle every
CYCLE_INTERVAL_MINUTES. Equivalent to `arq arena.workers.tasks.WorkerSettings`
with the arena's logging setup.

Environment:
    DATABASE_URL, REDIS_URL, OPENROUTER_API_KEY (unless SIMULATE_DECISIONS=true)
"""

import logging
import sys

from arq import run_worker

from arena.core.config import get_settings
from arena.core.logging_config import setup_logging
from arena.workers.tasks import WorkerSettings


def main() -> int:
    setup_logging("worker")
    logging.getLogger("arq").setLevel(logging.INFO)
    logger = logging.getLogger("arena.worker")

    settings = get_settings()
    logger.info(
        f"Cycle worker ({settings.environment}): every {settings.cycle_interval_minutes} min, "
        f"deadline {settings.cycle_deadline_seconds}s, lock TTL {settings.cycle_lock_ttl_seconds}s, "
        f"decisions={'simulated' if settings.simulate_decisions else 'openrouter'}"
    )
    if not settings.simulate_decisions and not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY is not set; every decision will fall back to hold")

    try:
        # Blocks until SIGINT/SIGTERM
        run_worker(WorkerSettings)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.exception(f"Worker failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
