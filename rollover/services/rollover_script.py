from shlex import quote

from rollover.domain.deployment import RolloverSpec

_TEMPLATE = """\
set -eu

echo "--- Starting deployment of {name_text} ---"

# Stop and remove any existing container with this name
if docker ps -a --format '{{{{.Names}}}}' | grep -qxF -- {name}; then
  echo "Stopping existing container: "{name}
  docker stop --time {timeout} {name}
  docker rm {name}
else
  echo "No existing container named "{name}" to stop/remove."
fi

echo "Pulling image: "{image}
docker pull {image}

echo "Running new container..."
docker run -d \\
  --name {name} \\
  --network {network} \\
  -p {ports} \\
  {image}

echo "Deployment of "{name}" finished successfully."
"""


def render_rollover_script(spec: RolloverSpec) -> str:
    """Render the rollover as a POSIX shell script driving the docker CLI.

    ``set -eu`` makes every command gate the next one, so the script's exit
    status is the status of the first failing step.
    """
    return _TEMPLATE.format(
        name=quote(spec.container_name),
        name_text=spec.container_name,
        timeout=int(spec.stop_timeout),
        image=quote(spec.image_reference),
        network=quote(spec.network),
        ports=quote(str(spec.port_binding)),
    )
