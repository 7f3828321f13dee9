from fastapi import HTTPException, Request, status

from wallboard.services.container import WallboardServices


def get_services(request: Request) -> WallboardServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Wallboard services are not initialized",
        )
    return services
