"""
Configuration management module.

Loads and manages configuration from YAML files and environment variables.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("config/validator.yaml")


class EngineConfig(BaseModel):
    """Configuration for the container engine client."""

    docker_binary: str = Field(default="docker", description="Container engine CLI")
    validation_timeout: int = Field(
        default=30, ge=0, description="Bound on the startup probe observation window (seconds)"
    )
    settle_seconds: float = Field(
        default=3.0, ge=0, description="Wait after starting a container before inspecting it"
    )
    command_timeout: int = Field(
        default=300, description="Timeout for a single engine invocation (seconds)"
    )


class LibrarySpec(BaseModel):
    """A runtime library and the filenames it may be installed under."""

    name: str
    variants: List[str]
    critical: bool = Field(default=True, description="Missing critical library fails validation")
    hint: Optional[str] = Field(default=None, description="Extra line logged when missing")


def _default_libraries() -> List[LibrarySpec]:
    return [
        LibrarySpec(
            name="PCRE",
            variants=["libpcre.so.1", "libpcre.so.3", "libpcre.so"],
            critical=True,
            hint="This is the 'libpcre.so.1: missing PCRE' issue!",
        ),
        LibrarySpec(name="YAML", variants=["libyaml*.so*"], critical=False),
    ]


class ChecksConfig(BaseModel):
    """Parameters of the individual image checks."""

    critical_paths: List[str] = Field(
        default_factory=lambda: [
            "/usr/local/apisix",
            "/usr/local/openresty",
            "/usr/local/openresty/nginx/sbin/nginx",
            "/docker-entrypoint.sh",
        ]
    )
    libraries: List[LibrarySpec] = Field(default_factory=_default_libraries)
    library_search_roots: List[str] = Field(default_factory=lambda: ["/usr", "/lib"])
    binaries: List[str] = Field(
        default_factory=lambda: [
            "/usr/local/openresty/nginx/sbin/nginx",
            "/usr/local/openresty/luajit/bin/luajit",
            "/usr/bin/apisix",
        ]
    )
    primary_binary: str = Field(default="/usr/bin/apisix")
    version_command: List[str] = Field(default_factory=lambda: ["apisix", "version"])
    version_pattern: str = Field(default=r"apisix|version")
    backend_unreachable_pattern: str = Field(default=r"connection refused|etcd")
    keepalive_command: List[str] = Field(default_factory=lambda: ["tail", "-f", "/dev/null"])
    fatal_log_pattern: str = Field(
        default=r"cannot open shared object|libpcre.*not found|libyaml.*not found"
    )
    fatal_log_excerpt_pattern: str = Field(default=r"cannot open shared object|libpcre|libyaml")
    warning_log_pattern: str = Field(default=r"error|warn|fatal")


class ScannerConfig(BaseModel):
    """Configuration for the vulnerability scanner."""

    trivy_binary: str = Field(default="trivy")
    severities: List[str] = Field(default_factory=lambda: ["HIGH", "CRITICAL"])
    zero_marker: str = Field(default="Total: 0")
    report_lines: int = Field(default=20, description="Scanner output lines surfaced on findings")
    timeout: int = Field(default=900, description="Scanner timeout in seconds")


class LocalCIConfig(BaseModel):
    """Configuration for the local CI runner."""

    dockerfile: Path = Field(default=Path("docker/debian-dev/Dockerfile"))
    context: Path = Field(default=Path("."))
    image_name: str = Field(default="genesis-apisix")
    image_tag: str = Field(default="local-test")
    build_args: Dict[str, str] = Field(
        default_factory=lambda: {
            "CODE_PATH": ".",
            "ENTRYPOINT_PATH": "./docker/debian-dev/docker-entrypoint.sh",
            "INSTALL_BROTLI": "./docker/debian-dev/install-brotli.sh",
        }
    )

    @property
    def full_image_name(self) -> str:
        return f"{self.image_name}:{self.image_tag}"


class Config(BaseModel):
    """Main configuration container."""

    engine: EngineConfig = Field(default_factory=EngineConfig)
    checks: ChecksConfig = Field(default_factory=ChecksConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    local_ci: LocalCIConfig = Field(default_factory=LocalCIConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from YAML file and environment variables.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Loaded Config instance.
        """
        config_dict: Dict[str, Any] = {}

        if config_path and config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f) or {}

        # Override with environment variables
        env_mappings = {
            "VALIDATION_TIMEOUT": ("engine", "validation_timeout"),
            "APISIX_VALIDATOR_SETTLE_SECONDS": ("engine", "settle_seconds"),
            "APISIX_VALIDATOR_DOCKER": ("engine", "docker_binary"),
            "APISIX_VALIDATOR_TRIVY": ("scanner", "trivy_binary"),
        }

        for env_var, (section, key) in env_mappings.items():
            value = os.environ.get(env_var)
            if value:
                if section not in config_dict:
                    config_dict[section] = {}
                config_dict[section][key] = value

        return cls(**config_dict)

    def save(self, config_path: Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            config_path: Path to save configuration.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
