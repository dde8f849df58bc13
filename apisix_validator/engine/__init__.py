"""Container engine client."""

from apisix_validator.engine.docker_engine import CommandResult, DockerEngine

__all__ = ["CommandResult", "DockerEngine"]
