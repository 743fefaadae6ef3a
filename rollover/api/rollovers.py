from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse

from rollover.core.logger import api_logger
from rollover.domain.errors import FetchError, RolloverError, StartError
from rollover.schemas.rollover import ContainerResponse, RolloverRequest, RolloverResponse
from rollover.services.rollover_script import render_rollover_script

router = APIRouter(prefix="/rollovers", tags=["rollovers"])


def _status_for(error: RolloverError) -> int:
    if isinstance(error, FetchError):
        return 502
    if isinstance(error, StartError):
        return 409
    return 500


# ---------------------------
# Replace a container
# ---------------------------
@router.post(
    "",
    response_model=RolloverResponse,
    summary="Roll a container over to a new image",
    description="Stop and remove the container with this name, pull the image, and run it again.",
)
async def create_rollover(payload: RolloverRequest, request: Request):
    service = request.app.state.rollover_service
    try:
        result = await service.rollover(payload.to_spec())
    except RolloverError as e:
        api_logger.error(f"Rollover of {payload.container_name} failed at step '{e.step}': {e}")
        raise HTTPException(
            status_code=_status_for(e),
            detail={"step": e.step, "exit_status": e.exit_status, "message": str(e)},
        )

    return RolloverResponse(
        container=ContainerResponse.from_instance(result.container),
        replaced=ContainerResponse.from_instance(result.replaced) if result.replaced else None,
        steps=result.steps,
    )


# ---------------------------
# Render the remote script
# ---------------------------
@router.post("/script", response_class=PlainTextResponse, summary="Render the rollover shell script")
async def render_script(payload: RolloverRequest):
    return render_rollover_script(payload.to_spec())
