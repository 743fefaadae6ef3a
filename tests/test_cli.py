# tests/test_cli.py
import pytest

from rollover import cli
from rollover.core.config import Settings
from rollover.services.in_memory import InMemoryContainerRuntime, InMemoryImageRegistry


@pytest.fixture
def settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    return Settings()


@pytest.fixture
def runtime(monkeypatch):
    registry = InMemoryImageRegistry(images=["thiettruong/rethink-practice-fe:latest"])
    runtime = InMemoryContainerRuntime(registry, networks=["app_app-network"])
    monkeypatch.setattr(cli, "DockerSDKRuntime", lambda: runtime)
    return runtime


def test_script_command_prints_script(settings, capsys):
    assert cli.main(["script", "--port", "8080:3000"], settings=settings) == 0

    out = capsys.readouterr().out
    assert out.startswith("set -eu")
    assert "-p 8080:3000" in out


def test_rollover_command_uses_settings_defaults(settings, runtime):
    assert cli.main(["rollover"], settings=settings) == 0

    container = runtime.containers["rethink-practice-fe"]
    assert container.is_running
    assert container.network == "app_app-network"


def test_rollover_command_exits_with_step_status(settings, runtime):
    status = cli.main(["rollover", "--image", "thiettruong/rethink-practice-fe:missing"], settings=settings)

    assert status == 13


def test_invalid_input_exits_with_2(settings, runtime):
    assert cli.main(["rollover", "--port", "0:3000"], settings=settings) == 2
    assert cli.main(["rollover", "--name", ""], settings=settings) == 2
    assert runtime.calls == []


def test_pipeline_skips_pull_request_events(settings, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("nothing should be built for a pull request")

    monkeypatch.setattr(cli, "from_env", fail)

    assert cli.main(["pipeline", "--event", "pull_request"], settings=settings) == 0


def test_pipeline_with_missing_key_file_exits_with_2(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    def fail(*args, **kwargs):
        raise AssertionError("nothing should be built without a usable key")

    monkeypatch.setattr(cli, "from_env", fail)
    settings = Settings(
        REGISTRY_USERNAME="thiettruong",
        REGISTRY_TOKEN="token",
        SSH_HOST="203.0.113.10",
        SSH_USERNAME="ubuntu",
        SSH_PRIVATE_KEY_PATH=tmp_path / "missing.pem",
    )

    assert cli.main(["pipeline"], settings=settings) == 2


def test_invalid_environment_config_exits_with_2(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ROLLOVER_HOST_PORT", "abc")

    assert cli.main(["script"]) == 2
