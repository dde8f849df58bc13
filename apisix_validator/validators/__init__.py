"""Image checks and the composite validator."""

from apisix_validator.validators.base_validator import BaseCheck
from apisix_validator.validators.dependency_check import BinaryDependencyCheck
from apisix_validator.validators.filesystem_checks import CriticalPathCheck, RuntimeLibraryCheck
from apisix_validator.validators.image_validator import ImageValidator, default_checks
from apisix_validator.validators.results import (
    CheckResult,
    CheckStatus,
    Finding,
    ValidationReport,
)
from apisix_validator.validators.runtime_checks import AppVersionCheck, ContainerStartupCheck
from apisix_validator.validators.vulnerability_check import VulnerabilityScanCheck

__all__ = [
    "BaseCheck",
    "CriticalPathCheck",
    "RuntimeLibraryCheck",
    "BinaryDependencyCheck",
    "AppVersionCheck",
    "ContainerStartupCheck",
    "VulnerabilityScanCheck",
    "ImageValidator",
    "default_checks",
    "CheckResult",
    "CheckStatus",
    "Finding",
    "ValidationReport",
]
