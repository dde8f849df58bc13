"""
Shared-library dependency resolution for compiled binaries.

Runs ``ldd`` inside the image and scans its free-text output for unresolved
dependencies. Both the glibc form (``libpcre.so.1 => not found``) and the
musl form (``Error loading shared library libpcre.so.1: No such file or
directory``) are recognised.
"""

import re
from typing import List

from loguru import logger

from apisix_validator.validators.base_validator import BaseCheck
from apisix_validator.validators.results import CheckResult, CheckStatus, Finding

UNRESOLVED_MARKERS = ("not found", "No such file")
SCRIPT_TYPE_PATTERN = re.compile(r"shell|script|text", re.IGNORECASE)

_GLIBC_MISSING = re.compile(r"^\s*(\S+)\s*=>\s*not found")
_MUSL_MISSING = re.compile(r"Error loading shared library\s+([^\s:]+)")


def unresolved_lines(ldd_output: str) -> List[str]:
    """Lines of ldd output reporting a dependency that could not be located."""
    return [
        line.strip()
        for line in ldd_output.splitlines()
        if any(marker in line for marker in UNRESOLVED_MARKERS)
    ]


def missing_libraries(ldd_output: str) -> List[str]:
    """
    Extract the names of unresolved libraries from ldd output.

    Args:
        ldd_output: Combined stdout/stderr of ``ldd``.

    Returns:
        Library names in order of appearance, without duplicates. Lines that
        carry a marker but no recognisable name are returned verbatim.
    """
    names: List[str] = []
    for line in unresolved_lines(ldd_output):
        match = _GLIBC_MISSING.match(line) or _MUSL_MISSING.search(line)
        name = match.group(1) if match else line
        if name not in names:
            names.append(name)
    return names


def count_dependencies(ldd_output: str) -> int:
    return len([line for line in ldd_output.splitlines() if line.strip()])


class BinaryDependencyCheck(BaseCheck):
    """Compiled binaries present in the image must resolve all shared libraries."""

    name = "binary-dependencies"
    title = "Checking binary dependencies for missing libraries..."

    def is_script(self, image: str, binary: str) -> bool:
        result = self.engine.run(image, "file", "-b", binary)
        file_type = result.stdout.strip() if result.ok else "unknown"
        return bool(SCRIPT_TYPE_PATTERN.search(file_type))

    def check_binary(self, image: str, binary: str) -> Finding:
        """
        Resolve the dependencies of one binary.

        Args:
            image: Image to validate.
            binary: Absolute path of the binary inside the image.

        Returns:
            Finding for the binary.
        """
        logger.info(f"  Checking: {binary}")

        if not self.engine.run(image, "test", "-f", binary).ok:
            logger.warning(f"  Binary not found: {binary} (skipping)")
            return Finding(subject=binary, status=CheckStatus.WARN, message="not found (skipped)")

        if self.is_script(image, binary):
            logger.info("  ℹ Script file detected, skipping ldd check")
            return Finding(subject=binary, status=CheckStatus.PASS, message="script (ldd skipped)")

        result = self.engine.run(image, "ldd", binary)
        output = result.output

        missing = missing_libraries(output)
        if missing:
            logger.error("  ✗ Missing dependencies detected:")
            lines = unresolved_lines(output)
            for line in lines:
                logger.error(f"    {line}")
            return Finding(
                subject=binary,
                status=CheckStatus.FAIL,
                message=f"missing dependencies: {', '.join(missing)}",
                details=lines,
            )

        if not result.ok:
            logger.warning(f"  ⚠ Could not run ldd on {binary} (may not be an ELF binary)")
            return Finding(
                subject=binary,
                status=CheckStatus.WARN,
                message="ldd failed (may not be an ELF binary)",
                details=output.splitlines()[:5],
            )

        dep_count = count_dependencies(output)
        logger.info("  ✓ All dependencies satisfied")
        logger.info(f"    ({dep_count} dependencies verified)")
        return Finding(
            subject=binary,
            status=CheckStatus.PASS,
            message=f"{dep_count} dependencies verified",
        )

    def check(self, image: str) -> CheckResult:
        findings = [self.check_binary(image, binary) for binary in self.config.binaries]
        return CheckResult.from_findings(self.name, findings)
