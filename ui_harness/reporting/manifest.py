"""Report sink manifests registered under the ui_harness.report_sinks group."""

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass

from pydantic import BaseModel, ValidationError

from ui_harness.reporting.base import ReportSink


class ReportSinkConfigError(Exception):
    """Raised when a report sink's configuration JSON is rejected."""


@dataclass(frozen=True, kw_only=True)
class ReportSinkManifest[ConfigT: BaseModel]:
    """Pairs a sink's configuration model with the factory that opens it.

    The factory is a context manager so a sink can flush or summarise once
    the run is over.
    """

    config_cls: type[ConfigT]
    sink_factory: Callable[[ConfigT], AbstractContextManager[ReportSink]]

    def parse_config(self, raw_json: str) -> ConfigT:
        """Validate the sink configuration given on the command line."""
        try:
            return self.config_cls.model_validate_json(raw_json)
        except ValidationError as e:
            raise ReportSinkConfigError(
                f"Invalid {self.config_cls.__name__}: {e}"
            ) from e

    def open(self, raw_json: str = "{}") -> AbstractContextManager[ReportSink]:
        """Build the sink from raw configuration JSON."""
        return self.sink_factory(self.parse_config(raw_json))
