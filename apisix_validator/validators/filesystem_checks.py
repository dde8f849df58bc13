"""
Filesystem checks: critical paths and runtime libraries.

Each probe runs in its own ephemeral container started with ``--rm``.
"""

import shlex
from typing import List, Optional

from loguru import logger

from apisix_validator.utils.config import LibrarySpec
from apisix_validator.validators.base_validator import BaseCheck
from apisix_validator.validators.results import CheckResult, CheckStatus, Finding


class CriticalPathCheck(BaseCheck):
    """Every configured path must exist in the image."""

    name = "critical-paths"
    title = "Checking critical paths exist..."

    def check(self, image: str) -> CheckResult:
        """
        Probe each critical path with ``test -e``.

        All paths are probed even after a missing one, so the report lists
        every missing path.

        Args:
            image: Image to validate.

        Returns:
            CheckResult with one finding per path.
        """
        findings: List[Finding] = []

        for path in self.config.critical_paths:
            if self.engine.run(image, "test", "-e", path).ok:
                logger.info(f"  ✓ {path}")
                findings.append(Finding(subject=path, status=CheckStatus.PASS, message="present"))
            else:
                logger.error(f"  ✗ {path} NOT FOUND")
                findings.append(Finding(subject=path, status=CheckStatus.FAIL, message="NOT FOUND"))

        return CheckResult.from_findings(self.name, findings)


class RuntimeLibraryCheck(BaseCheck):
    """Required shared libraries must be installed under one of their filenames."""

    name = "runtime-libraries"
    title = "Checking required runtime libraries..."

    def find_library(self, image: str, variant: str) -> Optional[str]:
        """
        Search the configured roots for a library filename.

        Args:
            image: Image to search.
            variant: Filename or glob passed to ``find -name``.

        Returns:
            First matching path, or None.
        """
        roots = " ".join(shlex.quote(root) for root in self.config.library_search_roots)
        script = f"find {roots} -name {shlex.quote(variant)} 2>/dev/null | head -1"
        result = self.engine.run(image, "sh", "-c", script)
        first = result.stdout.strip().splitlines()
        return first[0].strip() if first else None

    def check_library(self, image: str, library: LibrarySpec) -> Finding:
        """
        Look for a library, stopping at the first variant found.

        Args:
            image: Image to search.
            library: Library name, variants and criticality.

        Returns:
            Finding for the library.
        """
        for variant in library.variants:
            location = self.find_library(image, variant)
            if location:
                logger.info(f"  ✓ {library.name} library found: {variant}")
                return Finding(
                    subject=library.name,
                    status=CheckStatus.PASS,
                    message=f"found: {variant}",
                    details=[location],
                )

        if library.critical:
            logger.error(f"  ✗ {library.name} library NOT FOUND - nginx will fail to start")
            if library.hint:
                logger.error(f"    {library.hint}")
            return Finding(
                subject=library.name,
                status=CheckStatus.FAIL,
                message="NOT FOUND",
                details=list(library.variants),
            )

        logger.warning(f"  ⚠ {library.name} library not found (may not be critical)")
        return Finding(
            subject=library.name,
            status=CheckStatus.WARN,
            message="not found (advisory)",
            details=list(library.variants),
        )

    def check(self, image: str) -> CheckResult:
        findings = [self.check_library(image, library) for library in self.config.libraries]
        return CheckResult.from_findings(self.name, findings)
