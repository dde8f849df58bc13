"""
APISIX Image Validator

Pre-deployment validation of APISIX gateway Docker images: critical paths,
runtime libraries, shared-library resolution, startup health and
vulnerability scanning.
"""

__version__ = "0.1.0"
__author__ = "Genesis APISIX Team"
