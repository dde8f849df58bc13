"""
Command-line entry points.

Usage:
    apisix-validate-image genesis-apisix:3.15-main.5-e1355519
    VALIDATION_TIMEOUT=60 apisix-validate-image my-image:latest
    apisix-test-locally
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import ValidationError

from apisix_validator.errors import SetupError
from apisix_validator.pipeline.local_ci import LocalTestRunner
from apisix_validator.utils.config import DEFAULT_CONFIG_PATH, Config
from apisix_validator.utils.logger import get_logger
from apisix_validator.validators.image_validator import ImageValidator
from apisix_validator.validators.report import print_header, print_summary, save_report

VALIDATE_EPILOG = """\
Environment Variables:
  VALIDATION_TIMEOUT   Timeout for container startup validation (default: 30s)

Examples:
  %(prog)s genesis-apisix:3.15-main.5-e1355519
  VALIDATION_TIMEOUT=60 %(prog)s my-image:latest
"""


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console logging level",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a detailed log to this file",
    )


def build_validate_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apisix-validate-image",
        description=(
            "Validates a Docker image for missing dependencies and runtime issues. "
            "Catches problems like missing libpcre.so.1 before deployment."
        ),
        epilog=VALIDATE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "image",
        nargs="?",
        help="Name of the Docker image to validate (required)",
    )
    _add_common_arguments(parser)
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Startup validation timeout in seconds (overrides VALIDATION_TIMEOUT)",
    )
    parser.add_argument(
        "--json-report",
        type=Path,
        default=None,
        help="Write the validation report as JSON to this path",
    )
    return parser


def _load_config(path: Path) -> Optional[Config]:
    try:
        return Config.load(path)
    except ValidationError as e:
        logger.error(f"Invalid configuration in {path}: {e}")
        return None


def validate_main(argv: Optional[List[str]] = None) -> int:
    """Validate one image. Returns the process exit code."""
    parser = build_validate_parser()
    args = parser.parse_args(argv)

    get_logger("apisix_validator", log_file=args.log_file, level=args.log_level)

    if not args.image:
        logger.error("Docker image name is required")
        parser.print_help(sys.stderr)
        return 1

    config = _load_config(args.config)
    if config is None:
        return 1
    if args.timeout is not None:
        if args.timeout < 0:
            logger.error(f"--timeout must be non-negative, got {args.timeout}")
            return 1
        config.engine.validation_timeout = args.timeout

    print_header(args.image, config.engine.validation_timeout)

    validator = ImageValidator(config)
    try:
        report = validator.validate(args.image)
    except SetupError as e:
        logger.error(str(e))
        return 1

    print_summary(report)
    if args.json_report:
        save_report(report, args.json_report)

    return report.exit_code


def build_local_ci_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apisix-test-locally",
        description="Simulate the CI pipeline locally: build, validate and scan the image",
    )
    _add_common_arguments(parser)
    parser.add_argument("--dockerfile", type=Path, default=None, help="Dockerfile to build")
    parser.add_argument("--context", type=Path, default=None, help="Build context directory")
    parser.add_argument("--image", default=None, help="Image name (without tag)")
    parser.add_argument("--tag", default=None, help="Image tag")
    parser.add_argument(
        "--skip-build",
        action="store_true",
        help="Validate and scan an existing image without rebuilding",
    )
    return parser


def local_ci_main(argv: Optional[List[str]] = None) -> int:
    """Run the local CI pipeline. Returns the process exit code."""
    args = build_local_ci_parser().parse_args(argv)

    get_logger("apisix_validator", log_file=args.log_file, level=args.log_level)

    config = _load_config(args.config)
    if config is None:
        return 1

    ci = config.local_ci
    if args.dockerfile is not None:
        ci.dockerfile = args.dockerfile
    if args.context is not None:
        ci.context = args.context
    if args.image is not None:
        ci.image_name = args.image
    if args.tag is not None:
        ci.image_tag = args.tag

    return LocalTestRunner(config).run(skip_build=args.skip_build)


def validate_entrypoint() -> None:
    sys.exit(validate_main())


def local_ci_entrypoint() -> None:
    sys.exit(local_ci_main())
