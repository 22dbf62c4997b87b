"""Tests for CLI module."""

import json
import logging
import textwrap
from pathlib import Path

import pytest

from ui_harness.cli import (
    EXIT_ABORTED,
    EXIT_FAILURES,
    EXIT_OK,
    format_output,
    log_results_summary,
    run,
)
from ui_harness.models.result import AttemptRecord, UnitResult
from ui_harness.testing.factories import AttemptRecordFactory, UnitResultFactory
from ui_harness.testing.fakes import FakeEngineFactory

CONFIG = """
environment:
  name: qa
browser:
  type: chromium
  headless: true
testExecution:
  parallel: true
  threadCount: 2
retry:
  enabled: true
  maxRetries: 1
  delayBetweenRetries: 0
"""

PASSING_TESTS = """
def test_home(context):
    assert context.acquire_current_page() is not None


def test_search(context):
    pass
"""

FAILING_TESTS = """
def test_checkout(context):
    raise AssertionError("cart is empty")
"""


def test_log_results_summary_pass(caplog: pytest.LogCaptureFixture) -> None:
    """Logs passing results with checkmark symbol."""
    results = [UnitResult(name="test_home", status="pass", duration=1.5)]

    with caplog.at_level(logging.INFO):
        log_results_summary(logging.getLogger(), results)

    assert "Test Results Summary:" in caplog.text
    assert "✓ test_home: pass (1.50s)" in caplog.text
    assert "Retries" not in caplog.text


def test_log_results_summary_failure(caplog: pytest.LogCaptureFixture) -> None:
    """Logs failures with X symbol, message and retries used."""
    results = [
        UnitResult(
            name="test_checkout",
            status="fail",
            duration=3.0,
            message="AssertionError: cart is empty",
            attempts=[
                AttemptRecord(attempt_number=1, outcome="fail"),
                AttemptRecord(attempt_number=2, outcome="fail"),
            ],
        )
    ]

    with caplog.at_level(logging.INFO):
        log_results_summary(logging.getLogger(), results)

    assert "✗ test_checkout: fail (3.00s)" in caplog.text
    assert "Retries: 1" in caplog.text
    assert "Message: AssertionError: cart is empty" in caplog.text


def test_log_results_summary_skip(caplog: pytest.LogCaptureFixture) -> None:
    """Logs skipped results with dash symbol."""
    results = [UnitResult(name="test_beta", status="skip", duration=0.1)]

    with caplog.at_level(logging.INFO):
        log_results_summary(logging.getLogger(), results)

    assert "- test_beta: skip (0.10s)" in caplog.text


def test_format_output_empty() -> None:
    """Returns empty totals when no results."""
    assert format_output([]) == {
        "total": 0,
        "passed": 0,
        "failed": 0,
        "skipped": 0,
        "results": [],
    }


def test_format_output_mixed_results() -> None:
    """Formats mixed results with correct totals."""
    results = [
        UnitResultFactory.build(status="pass"),
        UnitResultFactory.build(status="fail"),
        UnitResultFactory.build(status="fail"),
        UnitResultFactory.build(status="skip"),
    ]

    output = format_output(results)

    assert output["total"] == 4
    assert output["passed"] == 1
    assert output["failed"] == 2
    assert output["skipped"] == 1
    assert [r["name"] for r in output["results"]] == [r.name for r in results]


def test_format_output_single_result() -> None:
    """Formats every field of a result."""
    result = UnitResultFactory.build(
        name="test_home",
        status="pass",
        duration=2.5,
        worker_id=1,
        attempts=[AttemptRecordFactory.build(outcome="pass")],
    )

    output = format_output([result])

    assert output["results"] == [
        {
            "name": "test_home",
            "status": "pass",
            "duration": 2.5,
            "message": None,
            "worker": 1,
        }
    ]


class TestRun:
    """Tests for the run function."""

    @pytest.fixture
    def config_dir(self, tmp_path: Path) -> Path:
        """Configuration directory with a qa environment."""
        directory = tmp_path / "config"
        directory.mkdir()
        (directory / "qa.yaml").write_text(CONFIG)
        return directory

    @pytest.fixture
    def tests_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        """Importable directory for sample test modules."""
        directory = tmp_path / "suites"
        directory.mkdir()
        monkeypatch.syspath_prepend(str(directory))
        return directory

    def test_returns_ok_when_all_pass(
        self,
        config_dir: Path,
        tests_dir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Returns 0 and prints the JSON summary."""
        (tests_dir / "cli_passing_suite.py").write_text(textwrap.dedent(PASSING_TESTS))

        exit_code = run(
            test_modules=["cli_passing_suite"],
            environment="qa",
            config_dir=config_dir,
            engine_factory=FakeEngineFactory(),
        )

        assert exit_code == EXIT_OK
        output = json.loads(capsys.readouterr().out)
        assert output["total"] == 2
        assert output["passed"] == 2

    def test_returns_failures_exit_code(
        self,
        config_dir: Path,
        tests_dir: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Returns 1 and writes the screenshot to the directory sink."""
        (tests_dir / "cli_failing_suite.py").write_text(textwrap.dedent(FAILING_TESTS))
        attachments = tmp_path / "attachments"

        exit_code = run(
            test_modules=["cli_failing_suite"],
            environment="qa",
            config_dir=config_dir,
            report_sink="directory",
            report_config_json=json.dumps({"path": str(attachments)}),
            engine_factory=FakeEngineFactory(),
        )

        assert exit_code == EXIT_FAILURES
        output = json.loads(capsys.readouterr().out)
        assert output["failed"] == 1
        assert output["results"][0]["message"] == "AssertionError: cart is empty"
        assert len(list(attachments.glob("test_checkout_failure_*.png"))) == 1

    def test_returns_ok_when_nothing_collected(
        self,
        config_dir: Path,
        tests_dir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Returns 0 and reports an empty run."""
        (tests_dir / "cli_empty_suite.py").write_text("VALUE = 1\n")

        exit_code = run(
            test_modules=["cli_empty_suite"],
            environment="qa",
            config_dir=config_dir,
            engine_factory=FakeEngineFactory(),
        )

        assert exit_code == EXIT_OK
        assert json.loads(capsys.readouterr().out)["total"] == 0

    def test_aborts_on_missing_configuration(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Returns 2 when the environment file does not exist."""
        with caplog.at_level(logging.ERROR):
            exit_code = run(
                test_modules=["cli_never_imported"],
                environment="prod",
                config_dir=tmp_path,
                engine_factory=FakeEngineFactory(),
            )

        assert exit_code == EXIT_ABORTED
        assert "Configuration file not found" in caplog.text

    def test_aborts_when_first_engine_fails(
        self,
        config_dir: Path,
        tests_dir: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Returns 2 when no browser engine can be started."""
        (tests_dir / "cli_aborted_suite.py").write_text(textwrap.dedent(PASSING_TESTS))

        with caplog.at_level(logging.ERROR):
            exit_code = run(
                test_modules=["cli_aborted_suite"],
                environment="qa",
                config_dir=config_dir,
                engine_factory=FakeEngineFactory(fail_on=[1]),
            )

        assert exit_code == EXIT_ABORTED
        assert "Run aborted" in caplog.text

    @pytest.mark.parametrize(
        ("report_sink", "report_config_json"),
        [("allure", "{}"), ("memory", '{"max_attachments": "many"}')],
    )
    def test_aborts_on_unusable_report_sink(
        self,
        config_dir: Path,
        tests_dir: Path,
        caplog: pytest.LogCaptureFixture,
        report_sink: str,
        report_config_json: str,
    ) -> None:
        """Returns 2 and starts no engine when the sink cannot be opened."""
        (tests_dir / "cli_sinkless_suite.py").write_text(textwrap.dedent(PASSING_TESTS))
        engine_factory = FakeEngineFactory()

        with caplog.at_level(logging.ERROR):
            exit_code = run(
                test_modules=["cli_sinkless_suite"],
                environment="qa",
                config_dir=config_dir,
                report_sink=report_sink,
                report_config_json=report_config_json,
                engine_factory=engine_factory,
            )

        assert exit_code == EXIT_ABORTED
        assert "Cannot open report sink" in caplog.text
        assert engine_factory.engines == []
