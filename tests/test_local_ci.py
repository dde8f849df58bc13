"""Step sequencing of the local CI runner."""

import pytest

from conftest import FakeTrivyScanner, failed, ok
from apisix_validator.pipeline.local_ci import LocalTestRunner


@pytest.fixture
def runner(config, engine, scanner):
    return LocalTestRunner(config, engine=engine, scanner=scanner)


def _subcommands(engine):
    return [c[0] for c in engine.calls]


def test_full_pipeline_succeeds(runner, engine, scanner):
    assert runner.run() == 0

    build = next(c for c in engine.calls if c[0] == "build")
    assert "INSTALL_BROTLI=./docker/debian-dev/install-brotli.sh" in build
    assert build[-3:] == ("-t", "genesis-apisix:local-test", ".")
    assert [cmd[0] for cmd in scanner.commands] == ["image", "config", "image"]


def test_engine_down_stops_pipeline(runner, engine):
    engine.daemon_up = False
    assert runner.run() == 1
    assert _subcommands(engine) == ["info"]


def test_build_failure_stops_pipeline(runner, engine, scanner):
    engine.build_ok = False
    assert runner.run() == 1
    assert "run" not in _subcommands(engine)
    assert scanner.commands == []


def test_validation_failure_stops_before_scans(runner, engine, scanner):
    engine.library_files = []
    assert runner.run() == 1
    # only the scan made by the validator itself
    assert [cmd[0] for cmd in scanner.commands] == ["image"]


def test_skip_build(runner, engine):
    assert runner.run(skip_build=True) == 0
    assert "build" not in _subcommands(engine)


def test_scanner_findings_and_absence_only_warn(config, engine):
    noisy = FakeTrivyScanner(result=failed(stdout="Total: 4 (HIGH: 4, CRITICAL: 0)"))
    assert LocalTestRunner(config, engine=engine, scanner=noisy).run() == 0

    absent = FakeTrivyScanner(installed=False)
    assert LocalTestRunner(config, engine=engine, scanner=absent).run() == 0
    assert absent.commands == []


def test_image_name_from_config(config, engine, scanner):
    config.local_ci.image_tag = "dev"
    engine.images.add("genesis-apisix:dev")
    runner = LocalTestRunner(config, engine=engine, scanner=scanner)

    assert runner.run(skip_build=True) == 0
    assert ("image", "inspect", "genesis-apisix:dev") in engine.calls
    assert scanner.commands[-1][-1] == "genesis-apisix:dev"
