"""Local CI pipeline."""

from apisix_validator.pipeline.local_ci import LocalTestRunner

__all__ = ["LocalTestRunner"]
