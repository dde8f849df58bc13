"""DockerEngine command construction and failure mapping."""

import subprocess
from types import SimpleNamespace

import pytest

from apisix_validator.engine.docker_engine import CommandResult, DockerEngine
from apisix_validator.errors import EngineError, EngineUnavailableError
from apisix_validator.utils.config import EngineConfig


class RecordingRun:
    """Stand-in for subprocess.run returning queued results."""

    def __init__(self, *results):
        self.results = list(results)
        self.commands = []

    def __call__(self, command, **kwargs):
        self.commands.append((command, kwargs))
        result = self.results.pop(0) if self.results else SimpleNamespace(returncode=0, stdout="", stderr="")
        if isinstance(result, BaseException):
            raise result
        return result


def completed(code=0, stdout="", stderr=""):
    return SimpleNamespace(returncode=code, stdout=stdout, stderr=stderr)


@pytest.fixture
def run(monkeypatch):
    recorder = RecordingRun()
    monkeypatch.setattr("apisix_validator.engine.docker_engine.subprocess.run", recorder)
    return recorder


@pytest.fixture
def docker_on_path(monkeypatch):
    monkeypatch.setattr(
        "apisix_validator.engine.docker_engine.shutil.which", lambda name: f"/usr/bin/{name}"
    )


def test_command_result_output_combines_streams():
    result = CommandResult(code=1, stdout="out\n", stderr="err\n")
    assert not result.ok
    assert result.output == "out\nerr"


def test_run_uses_ephemeral_container(run):
    run.results.append(completed(stdout="hello"))
    engine = DockerEngine(EngineConfig(docker_binary="podman", command_timeout=42))

    result = engine.run("img:1", "test", "-e", "/usr/local/apisix")

    command, kwargs = run.commands[0]
    assert command == ["podman", "run", "--rm", "img:1", "test", "-e", "/usr/local/apisix"]
    assert kwargs["timeout"] == 42
    assert kwargs["capture_output"] is True
    assert result.stdout == "hello"


def test_timeout_becomes_engine_error(run):
    run.results.append(subprocess.TimeoutExpired(cmd="docker", timeout=5))
    with pytest.raises(EngineError, match="timed out"):
        DockerEngine().run("img:1", "true")


def test_missing_binary_becomes_unavailable(run):
    run.results.append(FileNotFoundError("docker"))
    with pytest.raises(EngineUnavailableError):
        DockerEngine().image_exists("img:1")


def test_ensure_available_requires_binary_on_path(monkeypatch, run):
    monkeypatch.setattr("apisix_validator.engine.docker_engine.shutil.which", lambda name: None)
    with pytest.raises(EngineUnavailableError, match="not installed"):
        DockerEngine().ensure_available()
    assert run.commands == []


def test_ensure_available_requires_daemon(docker_on_path, run):
    run.results.append(completed(code=1, stderr="Cannot connect to the Docker daemon"))
    with pytest.raises(EngineUnavailableError, match="not running"):
        DockerEngine().ensure_available()
    assert run.commands[0][0] == ["docker", "info"]


def test_is_running_matches_short_id(run):
    container_id = "abcdef123456" + "9" * 52
    run.results.append(completed(stdout="abcdef123456\n"))
    assert DockerEngine().is_running(container_id)
    run.results.append(completed(stdout=""))
    assert not DockerEngine().is_running(container_id)
    run.results.append(completed(stdout="   \n"))
    assert not DockerEngine().is_running(container_id)


def test_detached_container_removed_on_error(run):
    run.results.extend([completed(stdout="c0ffee\n"), completed()])
    engine = DockerEngine()

    with pytest.raises(RuntimeError):
        with engine.detached("img:1", "tail", "-f", "/dev/null") as container_id:
            assert container_id == "c0ffee"
            raise RuntimeError("boom")

    assert run.commands[0][0] == ["docker", "run", "-d", "img:1", "tail", "-f", "/dev/null"]
    assert run.commands[1][0] == ["docker", "rm", "-f", "c0ffee"]


def test_run_detached_failure_raises(run):
    run.results.append(completed(code=125, stderr="pull access denied"))
    with pytest.raises(EngineError, match="Failed to start container"):
        DockerEngine().run_detached("img:1", "sleep", "1")


def test_list_images_filters_by_repository(run):
    run.results.append(
        completed(stdout="REPOSITORY TAG\ngenesis-apisix local-test\nredis 7\n")
    )
    assert DockerEngine().list_images("genesis-apisix") == [
        "REPOSITORY TAG",
        "genesis-apisix local-test",
    ]


def test_build_passes_build_args(run, tmp_path):
    dockerfile = tmp_path / "Dockerfile"
    assert DockerEngine().build(dockerfile, "img:2", tmp_path, {"CODE_PATH": "."})

    command, kwargs = run.commands[0]
    assert command == [
        "docker", "build", "--build-arg", "CODE_PATH=.",
        "-f", str(dockerfile), "-t", "img:2", str(tmp_path),
    ]
    assert kwargs["capture_output"] is False
