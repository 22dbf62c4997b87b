"""In-memory report sink module."""

from ui_harness.reporting.memory.config import MemorySinkConfig
from ui_harness.reporting.memory.manifest import memory_manifest
from ui_harness.reporting.memory.sink import MemoryReportSink

__all__ = ["MemoryReportSink", "MemorySinkConfig", "memory_manifest"]
