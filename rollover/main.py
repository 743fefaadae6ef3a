from typing import Optional

from fastapi import FastAPI

from rollover.api import containers, rollovers
from rollover.core.logger import api_logger
from rollover.services.docker_runtime import DockerSDKRuntime
from rollover.services.rollover_service import RolloverService


def create_app(rollover_service: Optional[RolloverService] = None) -> FastAPI:
    app = FastAPI(title="Rollover Agent")
    app.state.rollover_service = rollover_service

    app.include_router(rollovers.router)
    app.include_router(containers.router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    # ---------- Startup ----------

    @app.on_event("startup")
    async def startup_event():
        # The Docker client talks to the daemon as soon as it is created.
        if app.state.rollover_service is None:
            app.state.rollover_service = RolloverService(DockerSDKRuntime())
            api_logger.info("[STARTUP] Rollover service bound to the local Docker engine")

    return app


app = create_app()
