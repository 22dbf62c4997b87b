"""Failure screenshots attached to the run's report sink."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from playwright.sync_api import Page

from ui_harness.models.config import ScreenshotSettings
from ui_harness.models.result import Attachment, Outcome
from ui_harness.reporting.base import ReportSink
from ui_harness.reporting.directory.sink import write_new_file

log = logging.getLogger(__name__)

PNG_MIME_TYPE = "image/png"


def epoch_millis() -> int:
    """Current wall clock time in milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass(frozen=True, kw_only=True)
class FailureObserver:
    """Captures a screenshot when a test unit fails or is skipped.

    Nothing raised while capturing or attaching reaches the caller: a broken
    screenshot must never change a test's status.
    """

    sink: ReportSink
    settings: ScreenshotSettings = field(default_factory=ScreenshotSettings)
    clock: Callable[[], int] = field(default=epoch_millis, repr=False)

    def should_capture(self, outcome: Outcome, *, terminal: bool) -> bool:
        """Whether an attempt outcome warrants a screenshot."""
        if outcome == "pass" or not self.settings.take_on_failure:
            return False
        if self.settings.capture_policy == "every_attempt":
            return True
        return terminal

    def on_terminal_failure(
        self, test_name: str, page: Page | None
    ) -> Attachment | None:
        """Capture and attach a full-page screenshot of the worker's page.

        Args:
            test_name: Name of the failed or skipped test unit
            page: The worker's live page, or None if no session was active

        Returns:
            The attached artifact, or None if nothing was attached

        """
        if page is None:
            log.warning("No active page found to capture screenshot for %s", test_name)
            return None

        log.info("Taking screenshot for test: %s", test_name)
        timestamp = self.clock()
        try:
            screenshot = page.screenshot(
                full_page=self.settings.full_page, type="png"
            )
        except Exception:
            log.exception("Failed to capture screenshot for test: %s", test_name)
            return None

        attachment = Attachment(
            name=f"{test_name}_failure_{timestamp}",
            mime_type=PNG_MIME_TYPE,
            data=screenshot,
        )
        try:
            self.sink.attach(attachment.name, attachment.mime_type, attachment.data)
        except Exception:
            log.exception("Failed to attach screenshot for test: %s", test_name)
            return None

        if directory := self.settings.directory:
            self._save_copy(Path(directory), test_name, timestamp, screenshot)

        return attachment

    def _save_copy(
        self, directory: Path, test_name: str, timestamp: int, screenshot: bytes
    ) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
            write_new_file(directory, f"{test_name}_{timestamp}.png", screenshot)
        except OSError:
            log.exception("Failed to save screenshot for test: %s", test_name)
