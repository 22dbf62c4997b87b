"""Directory report sink module."""

from ui_harness.reporting.directory.config import DirectorySinkConfig
from ui_harness.reporting.directory.manifest import directory_manifest
from ui_harness.reporting.directory.sink import DirectoryReportSink

__all__ = ["DirectoryReportSink", "DirectorySinkConfig", "directory_manifest"]
