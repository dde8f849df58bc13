"""
Image validator.

Runs the image checks in a fixed order and aggregates their results into a
single verdict. Unlike a short-circuiting pipeline, every check runs even
after an earlier one failed, so the report is exhaustive.
"""

import time
from datetime import datetime
from typing import List, Optional

from loguru import logger

from apisix_validator.engine.docker_engine import DockerEngine
from apisix_validator.errors import EngineError, ImageNotFoundError
from apisix_validator.scanners.trivy import TrivyScanner
from apisix_validator.utils.config import Config
from apisix_validator.validators.base_validator import BaseCheck
from apisix_validator.validators.dependency_check import BinaryDependencyCheck
from apisix_validator.validators.filesystem_checks import CriticalPathCheck, RuntimeLibraryCheck
from apisix_validator.validators.results import (
    CheckResult,
    CheckStatus,
    Finding,
    ValidationReport,
)
from apisix_validator.validators.runtime_checks import AppVersionCheck, ContainerStartupCheck
from apisix_validator.validators.vulnerability_check import VulnerabilityScanCheck


def default_checks(
    engine: DockerEngine,
    config: Config,
    scanner: Optional[TrivyScanner] = None,
) -> List[BaseCheck]:
    """
    Build the standard check sequence.

    Args:
        engine: Container engine client.
        config: Validator configuration.
        scanner: Vulnerability scanner client.

    Returns:
        Checks in execution order.
    """
    return [
        CriticalPathCheck(engine, config.checks),
        RuntimeLibraryCheck(engine, config.checks),
        BinaryDependencyCheck(engine, config.checks),
        AppVersionCheck(engine, config.checks),
        ContainerStartupCheck(
            engine,
            config.checks,
            timeout_seconds=config.engine.validation_timeout,
            settle_seconds=config.engine.settle_seconds,
        ),
        VulnerabilityScanCheck(
            engine, config.checks, scanner=scanner or TrivyScanner(config.scanner)
        ),
    ]


class ImageValidator:
    """
    Validates a built image with an ordered list of independent checks.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        engine: Optional[DockerEngine] = None,
        scanner: Optional[TrivyScanner] = None,
        checks: Optional[List[BaseCheck]] = None,
    ) -> None:
        """
        Initialize ImageValidator.

        Args:
            config: Validator configuration.
            engine: Container engine client.
            scanner: Vulnerability scanner client.
            checks: Optional explicit list of checks (overrides the defaults).
        """
        self.config = config or Config()
        self.engine = engine or DockerEngine(self.config.engine)
        if checks is not None:
            self.checks = checks
        else:
            self.checks = default_checks(self.engine, self.config, scanner)

        logger.debug(
            f"ImageValidator initialized with {len(self.checks)} checks: "
            f"{[c.name for c in self.checks]}"
        )

    def ensure_ready(self, image: str) -> None:
        """
        Verify the preconditions of a run.

        Args:
            image: Image to validate.

        Raises:
            EngineUnavailableError: If the container engine is unreachable.
            ImageNotFoundError: If the image is not in the local store.
        """
        self.engine.ensure_available()
        logger.info("Docker is available and running")
        logger.info("")

        if not self.engine.image_exists(image):
            logger.info("Available images:")
            for row in self.engine.list_images(image.split(":")[0]):
                logger.info(row)
            raise ImageNotFoundError(image)
        logger.info(f"Image '{image}' found")
        logger.info("")

    def run_check(self, check: BaseCheck, image: str) -> CheckResult:
        """
        Run one check, converting engine failures into a FAIL result.

        Args:
            check: Check to run.
            image: Image to validate.

        Returns:
            The check's result.
        """
        logger.info(check.title)
        start = time.perf_counter()
        try:
            result = check.check(image)
        except EngineError as e:
            logger.error(f"  ✗ {check.name} could not complete: {e}")
            result = CheckResult.from_findings(
                check.name,
                [Finding(subject=image, status=CheckStatus.FAIL, message=str(e))],
            )
        result.duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info("")
        return result

    def validate(self, image: str) -> ValidationReport:
        """
        Validate an image.

        Args:
            image: Image name or id.

        Returns:
            ValidationReport with one result per check, in execution order.

        Raises:
            SetupError: If a precondition does not hold; no check runs then.
        """
        self.ensure_ready(image)

        report = ValidationReport(image=image, timeout_seconds=self.config.engine.validation_timeout)
        for check in self.checks:
            report.add(self.run_check(check, image))
        report.finished_at = datetime.now()

        return report
