import asyncio
import io
from typing import Optional

import paramiko

from rollover.core.logger import ssh_logger
from rollover.domain.deployment import CommandResult, DeploymentTarget
from rollover.domain.errors import RemoteCommandError
from rollover.domain.ports import RemoteCommandChannel

_KEY_TYPES = (paramiko.RSAKey, paramiko.Ed25519Key, paramiko.ECDSAKey)


def load_private_key(private_key: str) -> paramiko.PKey:
    """Load a PEM/OpenSSH private key of any supported type."""
    for key_type in _KEY_TYPES:
        try:
            return key_type.from_private_key(io.StringIO(private_key))
        except (paramiko.SSHException, ValueError):
            continue
    raise RemoteCommandError("Unsupported or invalid SSH private key")


class SSHCommandChannel(RemoteCommandChannel):
    """Runs scripts on the target host over SSH, fed to ``sh -s`` on stdin."""

    def __init__(self, connect_attempts: int = 3, retry_delay: float = 5.0, timeout: float = 10.0):
        self.connect_attempts = connect_attempts
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.client: Optional[paramiko.SSHClient] = None
        self.target: Optional[DeploymentTarget] = None

    async def connect(self, target: DeploymentTarget) -> None:
        key = load_private_key(target.private_key)
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        last_error: Exception | None = None
        for attempt in range(1, self.connect_attempts + 1):
            ssh_logger.info(f"Connecting to {target.username}@{target.host}:{target.port} (attempt {attempt})")
            try:
                await asyncio.to_thread(
                    client.connect,
                    target.host,
                    port=target.port,
                    username=target.username,
                    pkey=key,
                    timeout=self.timeout,
                )
                self.client = client
                self.target = target
                return
            except (paramiko.SSHException, OSError) as e:
                last_error = e
                ssh_logger.warning(f"Connection to {target.host} failed: {e}")
                if attempt < self.connect_attempts:
                    await asyncio.sleep(self.retry_delay)

        client.close()
        raise RemoteCommandError(f"Could not connect to {target.host}: {last_error}")

    async def execute(self, script: str) -> CommandResult:
        if self.client is None:
            raise RemoteCommandError("Channel is not connected")

        def _run() -> CommandResult:
            stdin, stdout, stderr = self.client.exec_command("sh -s", timeout=None)
            stdin.write(script)
            stdin.channel.shutdown_write()
            # Streams are drained before the exit status; a full window stalls the remote side.
            out = stdout.read()
            err = stderr.read()
            return CommandResult(
                exit_status=stdout.channel.recv_exit_status(),
                stdout=out.decode(errors="replace").strip(),
                stderr=err.decode(errors="replace").strip(),
            )

        ssh_logger.info(f"Executing script on {self.target.host}")
        try:
            result = await asyncio.to_thread(_run)
        except (paramiko.SSHException, OSError) as e:
            raise RemoteCommandError(f"Remote execution on {self.target.host} failed: {e}") from e

        for line in result.stdout.splitlines():
            ssh_logger.info(f"[{self.target.host}] {line}")
        return result

    async def close(self) -> None:
        if self.client is not None:
            await asyncio.to_thread(self.client.close)
            self.client = None
