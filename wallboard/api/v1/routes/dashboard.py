from fastapi import APIRouter, Depends, HTTPException, status

from wallboard.api.deps import get_services
from wallboard.domain.exceptions import AgentStoreError
from wallboard.schemas.dashboard import DashboardSnapshot
from wallboard.services.container import WallboardServices

router = APIRouter()


@router.get("/summary", response_model=DashboardSnapshot)
async def get_status_summary(
    services: WallboardServices = Depends(get_services),
) -> DashboardSnapshot:
    try:
        return await services.dashboard.snapshot()
    except AgentStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
