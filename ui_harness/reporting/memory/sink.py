"""In-memory report sink implementation."""

import logging
import threading
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field

from ui_harness.models.result import Attachment
from ui_harness.reporting.base import ReportSink
from ui_harness.reporting.memory.config import MemorySinkConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class MemoryReportSink(ReportSink):
    """Keeps attachments in process memory, in arrival order."""

    config: MemorySinkConfig = field(default_factory=MemorySinkConfig)
    _attachments: list[Attachment] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    @contextmanager
    def from_config(
        cls, config: MemorySinkConfig
    ) -> Generator["MemoryReportSink", None, None]:
        """Create a sink for the duration of a run."""
        sink = cls(config=config)
        yield sink
        log.info("Run produced %d attachment(s)", len(sink.attachments))

    def attach(self, name: str, mime_type: str, data: bytes) -> None:
        """Store an attachment, dropping the oldest beyond the configured cap."""
        with self._lock:
            self._attachments.append(
                Attachment(name=name, mime_type=mime_type, data=data)
            )
            limit = self.config.max_attachments
            if limit is not None and len(self._attachments) > limit:
                del self._attachments[0]

    @property
    def attachments(self) -> Sequence[Attachment]:
        """Snapshot of the stored attachments."""
        with self._lock:
            return tuple(self._attachments)
