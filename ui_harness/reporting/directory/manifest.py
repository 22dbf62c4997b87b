"""Directory report sink manifest."""

from ui_harness.reporting.directory.config import DirectorySinkConfig
from ui_harness.reporting.directory.sink import DirectoryReportSink
from ui_harness.reporting.manifest import ReportSinkManifest

directory_manifest = ReportSinkManifest(
    config_cls=DirectorySinkConfig,
    sink_factory=DirectoryReportSink.from_config,
)
