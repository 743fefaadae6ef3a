from fastapi import APIRouter, HTTPException, Request

from rollover.domain.errors import RolloverError
from rollover.schemas.rollover import ContainerResponse

router = APIRouter(prefix="/containers", tags=["containers"])


@router.get("/{name}", response_model=ContainerResponse)
async def get_container(name: str, request: Request):
    service = request.app.state.rollover_service
    try:
        container = await service.inspect(name)
    except RolloverError as e:
        raise HTTPException(status_code=500, detail={"step": e.step, "message": str(e)})
    if container is None:
        raise HTTPException(404, "Container not found")
    return ContainerResponse.from_instance(container)
