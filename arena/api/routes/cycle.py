"""Trade cycle trigger"""

from fastapi import APIRouter, status

from ...core.errors import AppError, ErrorCode, app_error_to_http, create_http_exception
from ...models.cycle import CycleSummary
from ...workers.tasks import run_locked_cycle
from ..dependencies import OrchestratorDep, RedisDep

router = APIRouter(prefix="/cycle", tags=["Trade Cycle"])


@router.api_route("/run", methods=["GET", "POST"], response_model=CycleSummary)
async def run_cycle(redis: RedisDep, orchestrator: OrchestratorDep) -> CycleSummary:
    """
    Run one trade cycle now.

    Takes no parameters. Returns 409 while another cycle (scheduled or
    manual) is running.
    """
    try:
        return await run_locked_cycle(redis, orchestrator)
    except AppError as e:
        raise app_error_to_http(e)
    except Exception as e:
        # Lock backend unreachable; the cycle itself never raises
        raise create_http_exception(
            ErrorCode.REDIS_UNAVAILABLE,
            "Trade cycle could not be started",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            internal_error=e,
        )
