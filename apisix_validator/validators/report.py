"""Presentation of validation runs: banners, summary and JSON export."""

import json
from pathlib import Path

from loguru import logger

from apisix_validator.validators.results import CheckStatus, ValidationReport

RULE = "=" * 40


def print_header(image: str, timeout_seconds: int) -> None:
    logger.info(RULE)
    logger.info("  Docker Image Validation")
    logger.info(RULE)
    logger.info(f"Image:   {image}")
    logger.info(f"Timeout: {timeout_seconds}s")
    logger.info(RULE)
    logger.info("")


def print_summary(report: ValidationReport) -> None:
    """
    Print the per-check table and the final verdict banner.

    Args:
        report: Completed validation report.
    """
    logger.info(RULE)
    for result in report.results:
        line = f"  {result.status.value:<4}  {result.name} ({result.duration_ms} ms)"
        if result.status is CheckStatus.FAIL:
            logger.error(line)
        elif result.status is CheckStatus.WARN:
            logger.warning(line)
        else:
            logger.info(line)
    logger.info(RULE)

    if report.passed:
        logger.info("✅ All validation checks passed!")
        logger.info(f"Image '{report.image}' is ready for deployment.")
    else:
        logger.error("❌ Validation checks failed!")
        for finding in report.failures():
            logger.error(f"  - {finding.subject}: {finding.message}")
        logger.info(f"Please fix the issues before deploying '{report.image}'")
    logger.info(RULE)


def save_report(report: ValidationReport, report_path: Path) -> None:
    """
    Save the validation report to a JSON file.

    Args:
        report: Validation report.
        report_path: Path to save report.
    """
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info(f"Report saved to {report_path}")
