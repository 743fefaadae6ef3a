import argparse
import asyncio
import sys
from typing import Optional, Sequence

from docker import from_env
from docker.errors import DockerException

from rollover.core.config import Settings
from rollover.core.logger import pipeline_logger, rollover_logger, set_level
from rollover.domain.container import PortBinding
from rollover.domain.deployment import RolloverSpec, TriggerEvent
from rollover.domain.errors import BuildError, ContainerLookupError, RolloverError
from rollover.services.docker_registry import DockerSDKImageBuilder, DockerSDKRegistry
from rollover.services.docker_runtime import DockerSDKRuntime
from rollover.services.pipeline_service import PipelineService
from rollover.services.rollover_script import render_rollover_script
from rollover.services.rollover_service import RolloverService
from rollover.services.ssh_channel import SSHCommandChannel

EXIT_INVALID_INPUT = 2


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rollover-agent",
        description="Replace a named container with one running a freshly pulled image.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_spec_arguments(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--name", default=settings.CONTAINER_NAME, help="Container name")
        sub.add_argument("--image", default=settings.IMAGE_REFERENCE, help="Image reference (repo:tag)")
        sub.add_argument("--network", default=settings.NETWORK, help="Existing Docker network")
        sub.add_argument(
            "--port",
            default=f"{settings.HOST_PORT}:{settings.CONTAINER_PORT}",
            help="Port binding as host:container",
        )
        sub.add_argument("--stop-timeout", type=int, default=settings.STOP_TIMEOUT)

    add_spec_arguments(subparsers.add_parser("rollover", help="Run the rollover against the local engine"))
    add_spec_arguments(subparsers.add_parser("script", help="Print the rollover as a shell script"))

    pipeline = subparsers.add_parser("pipeline", help="Build, push and roll over on the remote host")
    add_spec_arguments(pipeline)
    pipeline.add_argument("--event", default="push", help="CI event name (push, pull_request)")
    pipeline.add_argument("--ref", default=f"refs/heads/{settings.PRIMARY_BRANCH}", help="Git ref of the event")
    pipeline.add_argument("--build-failed", action="store_true", help="The build stage did not succeed")
    pipeline.add_argument("--context", default=str(settings.BUILD_CONTEXT), help="Docker build context")

    return parser


def spec_from_args(args: argparse.Namespace) -> RolloverSpec:
    return RolloverSpec(
        container_name=args.name,
        image_reference=args.image,
        network=args.network,
        port_binding=PortBinding.parse(args.port),
        stop_timeout=args.stop_timeout,
    )


async def run_rollover(spec: RolloverSpec) -> None:
    try:
        runtime = DockerSDKRuntime()
    except DockerException as e:
        raise ContainerLookupError(f"Cannot reach the Docker engine: {e}", name=spec.container_name) from e
    service = RolloverService(runtime)
    await service.rollover(spec)


async def run_pipeline(args: argparse.Namespace, spec: RolloverSpec, settings: Settings) -> None:
    event = TriggerEvent(
        event_name=args.event,
        ref=args.ref,
        build_succeeded=not args.build_failed,
        primary_branch=settings.PRIMARY_BRANCH,
    )
    if not event.is_deployable:
        pipeline_logger.info(f"Nothing to deploy for {event.event_name} on {event.ref}")
        return

    credentials = settings.registry_credentials()
    target = await settings.deployment_target()
    try:
        docker_client = from_env()
    except DockerException as e:
        raise BuildError(f"Cannot reach the Docker engine: {e}") from e
    service = PipelineService(
        DockerSDKImageBuilder(docker_client),
        DockerSDKRegistry(docker_client),
        SSHCommandChannel(connect_attempts=settings.SSH_CONNECT_ATTEMPTS),
    )
    await service.deploy(
        event,
        spec=spec,
        context_path=args.context,
        credentials=credentials,
        target=target,
    )


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    try:
        settings = settings or Settings()
    except ValueError as e:
        rollover_logger.error(f"Invalid configuration: {e}")
        return EXIT_INVALID_INPUT
    set_level(settings.LOG_LEVEL)
    args = build_parser(settings).parse_args(argv)

    try:
        spec = spec_from_args(args)
        if args.command == "script":
            sys.stdout.write(render_rollover_script(spec))
        elif args.command == "rollover":
            asyncio.run(run_rollover(spec))
        else:
            asyncio.run(run_pipeline(args, spec, settings))
    except ValueError as e:
        rollover_logger.error(f"Invalid input: {e}")
        return EXIT_INVALID_INPUT
    except RolloverError as e:
        rollover_logger.error(f"Step '{e.step}' failed (exit status {e.exit_status}): {e}")
        return e.exit_status
    return 0


if __name__ == "__main__":
    sys.exit(main())
