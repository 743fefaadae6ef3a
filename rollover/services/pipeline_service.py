from rollover.core.logger import pipeline_logger
from rollover.domain.deployment import (
    DeploymentTarget,
    PipelineResult,
    RolloverSpec,
    TriggerEvent,
)
from rollover.domain.errors import RemoteCommandError
from rollover.domain.image import RegistryCredentials
from rollover.domain.ports import ImageBuilder, ImageRegistry, RemoteCommandChannel
from rollover.services.rollover_script import render_rollover_script


class PipelineService:
    """
    The deploy job: build the image, push it, then run the rollover script on
    the target host. Only runs for deployable trigger events.
    """

    def __init__(
        self,
        builder: ImageBuilder,
        registry: ImageRegistry,
        channel: RemoteCommandChannel,
    ):
        self.builder = builder
        self.registry = registry
        self.channel = channel

    async def deploy(
        self,
        event: TriggerEvent,
        *,
        spec: RolloverSpec,
        context_path: str,
        credentials: RegistryCredentials,
        target: DeploymentTarget,
    ) -> PipelineResult:
        if not event.is_deployable:
            pipeline_logger.info(
                f"Skipping deploy for {event.event_name} on {event.ref} "
                f"(build succeeded: {event.build_succeeded})"
            )
            return PipelineResult(deployed=False)

        result = PipelineResult(deployed=False)

        await self.builder.build(context_path, spec.image_reference)
        result.steps.append("build")

        await self.registry.login(credentials)
        result.steps.append("login")

        await self.registry.push(spec.image_reference)
        result.steps.append("push")

        pipeline_logger.info(f"--- Starting deployment to {target.host} ---")
        await self.channel.connect(target)
        try:
            remote = await self.channel.execute(render_rollover_script(spec))
        finally:
            await self.channel.close()
        result.steps.append("remote")
        result.remote = remote

        if not remote.ok:
            pipeline_logger.error(f"Remote rollover exited with status {remote.exit_status}: {remote.stderr}")
            raise RemoteCommandError(
                f"Rollover script on {target.host} exited with status {remote.exit_status}",
                remote_status=remote.exit_status,
                stderr=remote.stderr,
            )

        result.deployed = True
        pipeline_logger.info(f"Deployment to {target.host} finished successfully.")
        return result
