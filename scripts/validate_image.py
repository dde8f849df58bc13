#!/usr/bin/env python3
"""
Script to validate a built APISIX Docker image before deployment.

Usage:
    python scripts/validate_image.py genesis-apisix:local-test
    VALIDATION_TIMEOUT=60 python scripts/validate_image.py my-image:latest
"""

import sys

from apisix_validator.cli import validate_main

if __name__ == "__main__":
    sys.exit(validate_main())
