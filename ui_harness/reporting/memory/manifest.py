"""In-memory report sink manifest."""

from ui_harness.reporting.manifest import ReportSinkManifest
from ui_harness.reporting.memory.config import MemorySinkConfig
from ui_harness.reporting.memory.sink import MemoryReportSink

memory_manifest = ReportSinkManifest(
    config_cls=MemorySinkConfig,
    sink_factory=MemoryReportSink.from_config,
)
