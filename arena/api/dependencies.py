"""FastAPI dependencies"""

from typing import Annotated

from fastapi import Depends, Request
from redis.asyncio import Redis

from ..services.trade_cycle import TradeCycleOrchestrator


def get_redis(request: Request) -> Redis:
    """Redis client created in the application lifespan."""
    return request.app.state.redis


def get_orchestrator() -> TradeCycleOrchestrator:
    return TradeCycleOrchestrator()


RedisDep = Annotated[Redis, Depends(get_redis)]
OrchestratorDep = Annotated[TradeCycleOrchestrator, Depends(get_orchestrator)]
