"""Tests for report sink loading module."""

from pathlib import Path

import pytest

from ui_harness.reporting.directory import (
    DirectoryReportSink,
    DirectorySinkConfig,
    directory_manifest,
)
from ui_harness.reporting.loading import (
    ReportSinkNotFoundError,
    available_report_sinks,
    load_report_sink_manifest,
)
from ui_harness.reporting.manifest import ReportSinkConfigError
from ui_harness.reporting.memory import MemoryReportSink, memory_manifest


def test_load_report_sink_manifest_returns_manifest() -> None:
    """Loads report sink manifests by key."""
    assert load_report_sink_manifest("memory") is memory_manifest
    assert load_report_sink_manifest("directory") is directory_manifest


def test_load_report_sink_manifest_raises_for_unknown_sink() -> None:
    """Raises ReportSinkNotFoundError for unknown sink key."""
    with pytest.raises(ReportSinkNotFoundError) as exc_info:
        load_report_sink_manifest("allure")

    assert "allure" in str(exc_info.value)
    assert "Available report sinks: directory, memory" in str(exc_info.value)


def test_available_report_sinks() -> None:
    """Lists the bundled sinks in sorted order."""
    assert available_report_sinks() == ["directory", "memory"]


class TestReportSinkManifest:
    """Tests for configuration handling of sink manifests."""

    def test_parse_config(self, tmp_path: Path) -> None:
        """Validates the JSON into the sink's config model."""
        config = directory_manifest.parse_config(f'{{"path": "{tmp_path}"}}')

        assert config == DirectorySinkConfig(path=tmp_path)

    @pytest.mark.parametrize(
        "raw_json",
        ['{"max_attachments": "many"}', "{not json"],
    )
    def test_parse_config_rejects_invalid(self, raw_json: str) -> None:
        """Raises ReportSinkConfigError naming the config model."""
        with pytest.raises(ReportSinkConfigError, match="MemorySinkConfig"):
            memory_manifest.parse_config(raw_json)

    def test_open_defaults(self) -> None:
        """Opens a sink from an empty configuration."""
        with memory_manifest.open() as sink:
            assert isinstance(sink, MemoryReportSink)

    def test_open_with_config(self, tmp_path: Path) -> None:
        """Opens a sink configured from JSON."""
        target = tmp_path / "out"

        with directory_manifest.open(f'{{"path": "{target}"}}') as sink:
            assert isinstance(sink, DirectoryReportSink)
            assert sink.path == target
