#!/usr/bin/env python3
"""
API server.

Serves the leaderboard, trader detail, the manual cycle trigger and
/metrics. Scheduled cycles come from run_worker.py.
"""

import uvicorn

from arena.core.config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "arena.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_debug,
        log_level=settings.log_level.lower(),
        # Access lines for every /metrics scrape are noise in production
        access_log=settings.is_debug,
    )


if __name__ == "__main__":
    main()
