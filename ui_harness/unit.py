"""Test units and the context handed to their bodies."""

from collections.abc import Callable
from dataclasses import dataclass, field

from playwright.sync_api import BrowserContext, Page

from ui_harness.models.config import RunConfiguration
from ui_harness.session_pool import SessionPool


class SkipUnit(Exception):
    """Raised by a test body to mark the unit as skipped."""


@dataclass(frozen=True, kw_only=True)
class UnitContext:
    """What a running test body may reach: its worker's session and settings."""

    worker_id: int
    attempt_number: int
    config: RunConfiguration
    pool: SessionPool = field(repr=False)

    def acquire_current_page(self) -> Page | None:
        """The worker's live page, or None outside an active session."""
        return self.pool.current_page(self.worker_id)

    def acquire_current_context(self) -> BrowserContext | None:
        """The worker's live browser context, or None outside a session."""
        return self.pool.current_context(self.worker_id)


@dataclass(frozen=True, kw_only=True)
class TestUnit:
    """A named test body; one invocation is one attempt."""

    __test__ = False

    name: str
    body: Callable[[UnitContext], None] = field(repr=False)
