"""Utility modules for the APISIX image validator."""

from apisix_validator.utils.logger import get_logger
from apisix_validator.utils.config import Config

__all__ = ["get_logger", "Config"]
