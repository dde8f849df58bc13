"""Vulnerability scan of the image. Informs, never gates."""

from typing import Optional

from loguru import logger

from apisix_validator.engine.docker_engine import DockerEngine
from apisix_validator.scanners.trivy import INSTALL_HINTS, TrivyScanner
from apisix_validator.utils.config import ChecksConfig
from apisix_validator.validators.base_validator import BaseCheck
from apisix_validator.validators.results import CheckResult, CheckStatus, Finding


class VulnerabilityScanCheck(BaseCheck):
    """HIGH/CRITICAL vulnerability scan; findings and scanner problems only warn."""

    name = "vulnerability-scan"
    title = "Running Trivy vulnerability scan (HIGH/CRITICAL only)..."

    def __init__(
        self,
        engine: DockerEngine,
        config: Optional[ChecksConfig] = None,
        scanner: Optional[TrivyScanner] = None,
    ) -> None:
        super().__init__(engine, config)
        self.scanner = scanner or TrivyScanner()

    def _result(self, image: str, status: CheckStatus, message: str, details=None) -> CheckResult:
        finding = Finding(subject=image, status=status, message=message, details=details or [])
        return CheckResult.from_findings(self.name, [finding])

    def check(self, image: str) -> CheckResult:
        if not self.scanner.is_available():
            logger.warning("  Trivy not installed, skipping vulnerability scan")
            for hint in INSTALL_HINTS:
                logger.info(f"  {hint}")
            return self._result(image, CheckStatus.WARN, "scanner not installed (skipping)")

        result = self.scanner.scan_image(image)
        lines = result.output.splitlines()[: self.scanner.config.report_lines]

        if not result.ok:
            logger.warning("  ⚠ Trivy scan encountered errors")
            for line in lines:
                logger.warning(f"    {line}")
            return self._result(image, CheckStatus.WARN, "scanner error", lines)

        if self.scanner.is_clean(result):
            logger.info("  ✓ No HIGH or CRITICAL vulnerabilities found")
            return self._result(image, CheckStatus.PASS, "no HIGH or CRITICAL vulnerabilities")

        logger.warning("  ⚠ Vulnerabilities detected:")
        for line in lines:
            logger.warning(f"    {line}")
        return self._result(image, CheckStatus.WARN, "vulnerabilities detected", lines)
