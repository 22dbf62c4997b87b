"""Lookup of report sinks registered as entry points."""

from importlib.metadata import entry_points
from typing import Any

from ui_harness.reporting.manifest import ReportSinkManifest

ENTRY_POINT_GROUP = "ui_harness.report_sinks"


class ReportSinkNotFoundError(Exception):
    """Raised when no usable report sink is registered under a key."""


def available_report_sinks() -> list[str]:
    """Keys of all registered report sinks, sorted."""
    return sorted({entry.name for entry in entry_points(group=ENTRY_POINT_GROUP)})


def load_report_sink_manifest(key: str) -> ReportSinkManifest[Any]:
    """Resolve a report sink key, e.g. "memory" or "directory", to its manifest.

    Raises:
        ReportSinkNotFoundError: If the key is unknown or its entry point
            does not point at a ReportSinkManifest

    """
    matches = entry_points(group=ENTRY_POINT_GROUP, name=key)
    if not matches:
        raise ReportSinkNotFoundError(
            f"Report sink '{key}' not found. "
            f"Available report sinks: {', '.join(available_report_sinks())}"
        )

    manifest = next(iter(matches)).load()
    if not isinstance(manifest, ReportSinkManifest):
        raise ReportSinkNotFoundError(
            f"Entry point '{key}' in {ENTRY_POINT_GROUP} is not a report sink manifest"
        )
    return manifest
