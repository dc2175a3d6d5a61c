"""Health and readiness endpoints."""

from fastapi import APIRouter, Depends

from ..config import ServerRuntimeConfig
from ..deps import get_config, server_state
from ..schemas import HealthResponse, ReadyResponse

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(config: ServerRuntimeConfig = Depends(get_config)):
    return HealthResponse(output_dir=str(config.output_dir.resolve()))


@router.get("/ready", response_model=ReadyResponse)
async def ready(config: ServerRuntimeConfig = Depends(get_config)):
    return ReadyResponse(
        ready=server_state.is_ready,
        output_dir_exists=config.output_dir.is_dir(),
    )
