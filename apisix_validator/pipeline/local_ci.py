"""
Local CI runner.

Simulates the CI pipeline before pushing: build the image, validate it, then
scan the Dockerfile and the image for HIGH/CRITICAL issues.
"""

from typing import Optional

from loguru import logger

from apisix_validator.engine.docker_engine import DockerEngine
from apisix_validator.errors import SetupError
from apisix_validator.scanners.trivy import TrivyScanner
from apisix_validator.utils.config import Config
from apisix_validator.validators.image_validator import ImageValidator
from apisix_validator.validators.report import print_summary

RULE = "━" * 40
TOTAL_STEPS = 5


class LocalTestRunner:
    """
    Sequential build / validate / scan pipeline for local development.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        engine: Optional[DockerEngine] = None,
        scanner: Optional[TrivyScanner] = None,
        validator: Optional[ImageValidator] = None,
    ) -> None:
        """
        Initialize LocalTestRunner.

        Args:
            config: Configuration; the ``local_ci`` section drives the build.
            engine: Container engine client.
            scanner: Vulnerability scanner client.
            validator: Image validator used in the validation step.
        """
        self.config = config or Config()
        self.engine = engine or DockerEngine(self.config.engine)
        self.scanner = scanner or TrivyScanner(self.config.scanner)
        self.validator = validator or ImageValidator(
            self.config, engine=self.engine, scanner=self.scanner
        )

    @property
    def image(self) -> str:
        return self.config.local_ci.full_image_name

    @staticmethod
    def _step(number: int, title: str) -> None:
        logger.info(f"[{number}/{TOTAL_STEPS}] {title}")

    def check_engine(self) -> bool:
        self._step(1, "Checking Docker...")
        try:
            self.engine.ensure_available()
        except SetupError as e:
            logger.error(f"ERROR: {e}")
            logger.info("Please start Docker:")
            logger.info("  macOS: Open Docker Desktop app")
            logger.info("  Linux: sudo systemctl start docker")
            return False
        logger.info("✓ Docker is running")
        return True

    def build_image(self) -> bool:
        ci = self.config.local_ci
        self._step(2, "Building APISIX Image...")
        logger.info(RULE)
        logger.info(f"Dockerfile: {ci.dockerfile}")
        logger.info(f"Image:      {self.image}")
        logger.info(RULE)

        if self.engine.build(ci.dockerfile, self.image, ci.context, ci.build_args):
            logger.info("✓ Image built successfully")
            return True
        logger.error("✗ Image build failed")
        return False

    def validate_image(self) -> bool:
        self._step(3, "Running Dependency Validation...")
        logger.info(RULE)
        logger.info("This checks for missing libraries like libpcre.so.1")
        logger.info(RULE)

        try:
            report = self.validator.validate(self.image)
        except SetupError as e:
            logger.error(f"✗ Validation could not start: {e}")
            return False

        print_summary(report)
        if report.passed:
            logger.info("✓ Validation passed")
            return True

        logger.error("✗ Validation failed")
        logger.info("Common fixes:")
        logger.info("  - Missing PCRE: Add 'pcre' to Dockerfile RUN apk add")
        logger.info("  - Missing YAML: Add 'yaml' to Dockerfile RUN apk add")
        return False

    def scan_dockerfile(self) -> None:
        dockerfile = self.config.local_ci.dockerfile
        self._step(4, "Running Trivy Config Scan...")
        logger.info(RULE)
        if not self.scanner.is_available():
            self._scanner_missing("config scan")
            return

        if self.scanner.scan_config(dockerfile).ok:
            logger.info("✓ Dockerfile config scan passed")
        else:
            logger.warning("⚠ Dockerfile has configuration issues")
            logger.info(f"Run for details: {self.scanner.config.trivy_binary} config {dockerfile}")

    def scan_image(self) -> None:
        self._step(5, "Running Trivy Image Scan...")
        logger.info(RULE)
        if not self.scanner.is_available():
            self._scanner_missing("vulnerability scan")
            return

        logger.info(f"Scanning for {self.scanner.severity_filter} vulnerabilities...")
        result = self.scanner.scan_image(self.image)
        if self.scanner.is_clean(result):
            logger.info("✓ No HIGH/CRITICAL vulnerabilities found")
            return

        logger.warning("⚠ Some vulnerabilities detected")
        for line in result.output.splitlines():
            logger.warning(f"  {line}")
        logger.info("Note: Alpine-based images typically have fewer vulnerabilities")

    @staticmethod
    def _scanner_missing(what: str) -> None:
        logger.warning(f"⚠ Trivy not installed, skipping {what}")
        logger.info("Install Trivy for security scanning:")
        logger.info("  macOS: brew install aquasecurity/trivy/trivy")
        logger.info("  Linux: https://aquasecurity.github.io/trivy/")

    def print_next_steps(self) -> None:
        image = self.image
        logger.info("✅ All Tests Passed!")
        logger.info("Image Details:")
        logger.info(f"  Name: {image}")
        logger.info(f"  Size: {self.engine.image_size(image)}")
        logger.info("Next Steps:")
        logger.info(f"  • Test locally:     docker run --rm {image} apisix version")
        logger.info(f"  • Interactive shell: docker run -it --rm {image} /bin/sh")
        logger.info(f"  • Start APISIX:     docker run -p 9080:9080 -p 9443:9443 {image}")
        logger.info("  • Test health:      curl http://localhost:9080/apisix/status")

    def run(self, skip_build: bool = False) -> int:
        """
        Run the local pipeline.

        Args:
            skip_build: Validate and scan an existing image without rebuilding.

        Returns:
            Process exit code: 0 on success, 1 on the first hard failure.
        """
        logger.info("Genesis APISIX - Local Test Runner")

        if not self.check_engine():
            return 1

        if skip_build:
            self._step(2, f"Skipping build, using existing image {self.image}")
        elif not self.build_image():
            return 1

        if not self.validate_image():
            return 1

        self.scan_dockerfile()
        self.scan_image()
        self.print_next_steps()
        return 0
