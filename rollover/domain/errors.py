class RolloverError(Exception):
    """Base error of a failed rollover step. None of these are retried."""

    step = "rollover"
    exit_status = 1

    def __init__(self, message: str, *, name: str | None = None):
        super().__init__(message)
        self.name = name


class ContainerLookupError(RolloverError, LookupError):
    step = "lookup"
    exit_status = 10


class StopError(RolloverError):
    step = "stop"
    exit_status = 11


class RemoveError(RolloverError):
    step = "remove"
    exit_status = 12


class FetchError(RolloverError):
    step = "fetch"
    exit_status = 13


class StartError(RolloverError):
    step = "start"
    exit_status = 14


# -------------------------------
# Pipeline (driver side)
# -------------------------------
class PipelineError(RolloverError):
    step = "pipeline"


class BuildError(PipelineError):
    step = "build"
    exit_status = 20


class AuthenticationError(PipelineError):
    step = "login"
    exit_status = 21


class PushError(PipelineError):
    step = "push"
    exit_status = 22


class RemoteCommandError(PipelineError):
    step = "remote"
    exit_status = 23

    def __init__(self, message: str, *, remote_status: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.remote_status = remote_status
        self.stderr = stderr


STEP_ERRORS: dict[str, type[RolloverError]] = {
    cls.step: cls
    for cls in (ContainerLookupError, StopError, RemoveError, FetchError, StartError)
}
