"""Abstract base class for report sinks."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class ReportSink(ABC):
    """Destination for diagnostic artifacts produced during a run.

    Sinks are shared by all workers, so implementations must tolerate
    concurrent `attach` calls.
    """

    @abstractmethod
    def attach(self, name: str, mime_type: str, data: bytes) -> None:
        """Store one artifact.

        Args:
            name: Artifact name, unique within the run
            mime_type: Content type of the payload (e.g., "image/png")
            data: Raw payload

        """
