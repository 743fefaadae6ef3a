from rollover.core.logger import rollover_logger
from rollover.domain.container import ContainerInstance
from rollover.domain.deployment import RolloverResult, RolloverSpec
from rollover.domain.errors import STEP_ERRORS, RolloverError
from rollover.domain.ports import ContainerRuntime


class RolloverService:
    """
    Replace the container named in a RolloverSpec with a fresh one.

    lookup -> (stop -> remove) -> fetch -> start, strictly in order; the first
    failure aborts the sequence. Nothing is rolled back: once the old
    container is removed, a failed fetch or start leaves the host without
    any container of that name.
    """

    def __init__(self, runtime: ContainerRuntime):
        self.runtime = runtime

    async def inspect(self, name: str) -> ContainerInstance | None:
        return await self._step("lookup", name, self.runtime.find(name))

    async def rollover(self, spec: RolloverSpec) -> RolloverResult:
        name = spec.container_name
        steps: list[str] = []

        rollover_logger.info(f"Looking up existing container: {name}")
        existing = await self.inspect(name)
        steps.append("lookup")

        if existing:
            rollover_logger.info(f"Stopping existing container: {name} ({existing.image_reference})")
            await self._step("stop", name, self.runtime.stop(name, timeout=spec.stop_timeout))
            steps.append("stop")

            rollover_logger.info(f"Removing existing container: {name}")
            await self._step("remove", name, self.runtime.remove(name))
            steps.append("remove")
        else:
            rollover_logger.info(f"No existing container named {name} to stop/remove.")

        rollover_logger.info(f"Pulling image: {spec.image_reference}")
        image_id = await self._step("fetch", name, self.runtime.pull(spec.image_reference))
        steps.append("fetch")

        rollover_logger.info(
            f"Running new container {name} on {spec.network} with ports {spec.port_binding}"
        )
        container = await self._step(
            "start",
            name,
            self.runtime.run(
                name=name,
                image=spec.image_reference,
                network=spec.network,
                port_binding=spec.port_binding,
            ),
        )
        steps.append("start")
        if container.image_id is None:
            container.image_id = image_id

        rollover_logger.info(f"Rollover of {name} finished: {container.container_id or 'started'}")
        return RolloverResult(container=container, replaced=existing, steps=steps)

    async def _step(self, step: str, name: str, awaitable):
        try:
            return await awaitable
        except RolloverError:
            rollover_logger.error(f"Step '{step}' failed for {name}")
            raise
        except Exception as exc:
            rollover_logger.error(f"Step '{step}' failed for {name}: {exc}")
            raise STEP_ERRORS[step](f"{step} failed for {name}: {exc}", name=name) from exc
