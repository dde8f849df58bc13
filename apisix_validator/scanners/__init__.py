"""Vulnerability scanner clients."""

from apisix_validator.scanners.trivy import TrivyScanner

__all__ = ["TrivyScanner"]
