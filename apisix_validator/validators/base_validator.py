"""Abstract base for image checks."""

from abc import ABC, abstractmethod
from typing import Optional

from apisix_validator.engine.docker_engine import DockerEngine
from apisix_validator.utils.config import ChecksConfig
from apisix_validator.validators.results import CheckResult


class BaseCheck(ABC):
    """Abstract base for a single validation check run against an image."""

    name: str = "check"
    title: str = "Running check..."

    def __init__(self, engine: DockerEngine, config: Optional[ChecksConfig] = None) -> None:
        self.engine = engine
        self.config = config or ChecksConfig()

    @abstractmethod
    def check(self, image: str) -> CheckResult:
        """Validate an image. Returns the check's result."""
        pass
