from fastapi import APIRouter, Depends, HTTPException, status

from wallboard.api.deps import get_services
from wallboard.domain.exceptions import AgentStoreError
from wallboard.services.container import WallboardServices

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/store")
async def store_health(
    services: WallboardServices = Depends(get_services),
) -> dict[str, str | int]:
    try:
        agents = await services.store.list()
    except AgentStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return {"store": "ok", "agents": len(agents)}
