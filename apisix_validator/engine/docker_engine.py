"""
Docker CLI client.

Wraps the handful of ``docker`` subcommands the checks need. Every call is a
blocking ``subprocess.run`` with captured output.
"""

import shutil
import subprocess
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel

from apisix_validator.errors import EngineError, EngineUnavailableError
from apisix_validator.utils.config import EngineConfig


class CommandResult(BaseModel):
    """Outcome of one engine invocation."""

    code: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.code == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, the way ``2>&1`` would capture it."""
        return (self.stdout + self.stderr).strip()


class DockerEngine:
    """
    Container engine client backed by the ``docker`` CLI.
    """

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        """
        Initialize DockerEngine.

        Args:
            config: Engine configuration.
        """
        self.config = config or EngineConfig()

    def _command(self, *args: str) -> List[str]:
        return [self.config.docker_binary, *args]

    def _exec(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        capture: bool = True,
    ) -> CommandResult:
        """
        Run a docker subcommand.

        Args:
            args: Subcommand and its arguments.
            timeout: Seconds before the call is abandoned.
            capture: Capture output instead of streaming it to the terminal.

        Returns:
            CommandResult of the invocation.

        Raises:
            EngineUnavailableError: If the docker binary cannot be executed.
            EngineError: If the call times out.
        """
        command = self._command(*args)
        logger.debug(f"Running: {' '.join(command)}")
        started = time.monotonic()
        try:
            proc = subprocess.run(
                command,
                capture_output=capture,
                text=True,
                timeout=timeout or self.config.command_timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise EngineUnavailableError(
                f"{self.config.docker_binary} is not installed or not in PATH"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise EngineError(f"'{' '.join(command)}' timed out after {e.timeout}s") from e

        return CommandResult(
            code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    def ensure_available(self) -> None:
        """
        Check the docker CLI is installed and its daemon answers.

        Raises:
            EngineUnavailableError: If either condition does not hold.
        """
        if shutil.which(self.config.docker_binary) is None:
            raise EngineUnavailableError("Docker is not installed or not in PATH")

        try:
            result = self._exec(["info"])
        except EngineError as e:
            raise EngineUnavailableError(f"Docker daemon is not responding: {e}") from e
        if not result.ok:
            raise EngineUnavailableError(
                "Docker daemon is not running. Please start Docker Desktop."
            )

    def image_exists(self, image: str) -> bool:
        return self._exec(["image", "inspect", image]).ok

    def list_images(self, repository: str) -> List[str]:
        """
        List local images whose ``docker images`` row mentions a repository.

        Args:
            repository: Repository name, without tag.

        Returns:
            Header line followed by the matching rows.
        """
        result = self._exec(["images"])
        if not result.ok:
            return []
        rows = result.stdout.splitlines()
        return [row for row in rows if "REPOSITORY" in row or repository in row]

    def image_size(self, image: str) -> str:
        result = self._exec(["images", image, "--format", "{{.Size}}"])
        return result.stdout.strip() if result.ok else "unknown"

    def run(self, image: str, *command: str, timeout: Optional[float] = None) -> CommandResult:
        """
        Run a command in an ephemeral container removed on exit.

        Args:
            image: Image to start the container from.
            *command: Command and arguments executed in the container.
            timeout: Seconds before the call is abandoned.

        Returns:
            CommandResult of the container process.
        """
        return self._exec(["run", "--rm", image, *command], timeout=timeout)

    def run_detached(self, image: str, *command: str) -> str:
        """
        Start a detached container.

        Returns:
            The full container id.

        Raises:
            EngineError: If the container could not be started.
        """
        result = self._exec(["run", "-d", image, *command])
        if not result.ok:
            raise EngineError(f"Failed to start container: {result.output}")
        return result.stdout.strip()

    def is_running(self, container_id: str, timeout: Optional[float] = None) -> bool:
        result = self._exec(
            ["ps", "--filter", f"id={container_id}", "--format", "{{.ID}}"],
            timeout=timeout,
        )
        # `docker ps` prints the 12-character short id
        short_ids = [line.strip() for line in result.stdout.splitlines()]
        return any(short_id and container_id.startswith(short_id) for short_id in short_ids)

    def logs(self, container_id: str, timeout: Optional[float] = None) -> str:
        result = self._exec(["logs", container_id], timeout=timeout)
        return result.output

    def remove(self, container_id: str) -> None:
        """Force-remove a container, logging instead of raising on failure."""
        try:
            result = self._exec(["rm", "-f", container_id])
        except EngineError as e:
            logger.warning(f"Failed to remove container {container_id[:12]}: {e}")
            return
        if not result.ok:
            logger.warning(f"Failed to remove container {container_id[:12]}: {result.output}")

    @contextmanager
    def detached(self, image: str, *command: str) -> Iterator[str]:
        """
        Start a detached container and remove it when the block exits.

        Args:
            image: Image to start the container from.
            *command: Command keeping the container alive.

        Yields:
            The container id.
        """
        container_id = self.run_detached(image, *command)
        try:
            yield container_id
        finally:
            self.remove(container_id)

    def build(
        self,
        dockerfile: Path,
        tag: str,
        context: Path = Path("."),
        build_args: Optional[Dict[str, str]] = None,
    ) -> bool:
        """
        Build an image, streaming the build output to the terminal.

        Args:
            dockerfile: Path to the Dockerfile.
            tag: Tag for the built image.
            context: Build context directory.
            build_args: ``--build-arg`` values.

        Returns:
            True if the build succeeded.
        """
        args: List[str] = ["build"]
        for key, value in (build_args or {}).items():
            args.extend(["--build-arg", f"{key}={value}"])
        args.extend(["-f", str(dockerfile), "-t", tag, str(context)])
        # Builds are not bounded by command_timeout
        return self._exec(args, timeout=24 * 3600, capture=False).ok
