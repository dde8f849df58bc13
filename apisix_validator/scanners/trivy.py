"""
Trivy vulnerability scanner client.

The scanner is treated as an opaque tool: it is invoked and its text output
is only searched for the zero-findings marker.
"""

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from loguru import logger

from apisix_validator.engine.docker_engine import CommandResult
from apisix_validator.utils.config import ScannerConfig

INSTALL_HINTS = [
    "Install: brew install aquasecurity/trivy/trivy (macOS)",
    "Install: https://aquasecurity.github.io/trivy/ (other OS)",
]


class TrivyScanner:
    """Runs ``trivy`` image and config scans."""

    def __init__(self, config: Optional[ScannerConfig] = None) -> None:
        self.config = config or ScannerConfig()

    def is_available(self) -> bool:
        return shutil.which(self.config.trivy_binary) is not None

    @property
    def severity_filter(self) -> str:
        return ",".join(self.config.severities)

    def _run(self, args: List[str]) -> CommandResult:
        command = [self.config.trivy_binary, *args]
        logger.debug(f"Running: {' '.join(command)}")
        try:
            proc = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            return CommandResult(code=124, stderr=f"trivy timed out after {e.timeout}s")
        except FileNotFoundError:
            return CommandResult(code=127, stderr=f"{self.config.trivy_binary}: command not found")
        return CommandResult(code=proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or "")

    def scan_image(self, image: str) -> CommandResult:
        """
        Scan an image for vulnerabilities of the configured severities.

        Args:
            image: Image name or id.

        Returns:
            CommandResult with the scanner's text report.
        """
        return self._run(["image", "--severity", self.severity_filter, "--quiet", image])

    def scan_config(self, dockerfile: Path) -> CommandResult:
        """Scan a Dockerfile for misconfigurations."""
        return self._run(
            ["config", "--severity", self.severity_filter, "--exit-code", "0", str(dockerfile)]
        )

    def is_clean(self, result: CommandResult) -> bool:
        return result.ok and self.config.zero_marker in result.output
