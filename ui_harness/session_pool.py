"""Per-worker ownership of Playwright engine, browser, context and page."""

import logging
from collections.abc import Callable, Generator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field

from playwright.sync_api import Browser, BrowserContext, Page, Playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from ui_harness.models.config import RunConfiguration

log = logging.getLogger(__name__)

type EngineFactory = Callable[[], Playwright]


class EngineStartError(Exception):
    """Raised when a worker's engine or browser cannot be started."""


def start_playwright() -> Playwright:
    """Start a Playwright driver bound to the calling thread."""
    return sync_playwright().start()


@dataclass(kw_only=True)
class WorkerSession:
    """Browser stack owned by exactly one worker.

    The engine and browser live for the whole run; the context and page live
    for a single test attempt.
    """

    worker_id: int
    engine: Playwright | None = None
    browser: Browser | None = None
    context: BrowserContext | None = field(default=None, repr=False)
    page: Page | None = field(default=None, repr=False)


class SessionPool:
    """Give every worker its own isolated browser stack.

    Sessions are keyed by worker id and only ever touched by the thread that
    runs that worker, so the handles need no locking. Playwright's sync API
    is bound to the thread that started it.
    """

    def __init__(
        self,
        config: RunConfiguration,
        engine_factory: EngineFactory = start_playwright,
    ) -> None:
        self.config = config
        self._engine_factory = engine_factory
        self._sessions: dict[int, WorkerSession] = {}

    def _session(self, worker_id: int) -> WorkerSession:
        return self._sessions.setdefault(worker_id, WorkerSession(worker_id=worker_id))

    def acquire_worker_engine(self, worker_id: int) -> Playwright:
        """Return the worker's engine, starting it on first use."""
        session = self._session(worker_id)
        if session.engine is not None:
            return session.engine

        log.debug("Starting Playwright engine for worker %d", worker_id)
        try:
            session.engine = self._engine_factory()
        except Exception as e:
            raise EngineStartError(
                f"Cannot start browser engine for worker {worker_id}: {e}"
            ) from e
        return session.engine

    def acquire_worker_browser(self, worker_id: int) -> Browser:
        """Return the worker's browser, launching it on first use."""
        session = self._session(worker_id)
        if session.browser is not None:
            return session.browser

        engine = self.acquire_worker_engine(worker_id)
        browser_type = getattr(engine, self.config.browser_kind)
        log.debug(
            "Launching %s browser for worker %d (headless=%s, slow_mo=%dms)",
            self.config.browser_kind,
            worker_id,
            self.config.headless,
            self.config.slow_mo_ms,
        )
        try:
            session.browser = browser_type.launch(
                headless=self.config.headless,
                slow_mo=self.config.slow_mo_ms,
            )
        except Exception as e:
            raise EngineStartError(
                f"Cannot launch {self.config.browser_kind} for worker {worker_id}: {e}"
            ) from e
        return session.browser

    def begin_test_session(self, worker_id: int) -> Page:
        """Create a fresh context and page for one test attempt.

        Navigation to the base URL is best effort: a failure is logged and
        the page is returned anyway. Any other failure releases whatever was
        already opened and propagates.
        """
        browser = self.acquire_worker_browser(worker_id)
        session = self._session(worker_id)
        if session.context is not None:
            log.warning(
                "Worker %d began a session without ending the previous one",
                worker_id,
            )
            self.end_test_session(worker_id)

        try:
            session.context = browser.new_context()
            session.page = session.context.new_page()
            session.page.set_default_timeout(float(self.config.default_timeout_ms))
        except Exception:
            self.end_test_session(worker_id)
            raise

        if base_url := self.config.base_url:
            log.info("Navigating to base URL: %s", base_url)
            try:
                session.page.goto(base_url)
            except PlaywrightError as e:
                log.warning("Navigation to base URL %s failed: %s", base_url, e)

        return session.page

    def end_test_session(self, worker_id: int) -> None:
        """Close the worker's page, then its context."""
        session = self._sessions.get(worker_id)
        if session is None:
            return

        page, session.page = session.page, None
        context, session.context = session.context, None

        if page is not None:
            try:
                page.close()
            except PlaywrightError as e:
                log.warning("Failed to close page for worker %d: %s", worker_id, e)
        if context is not None:
            try:
                context.close()
            except PlaywrightError as e:
                log.warning("Failed to close context for worker %d: %s", worker_id, e)

    @contextmanager
    def test_session(self, worker_id: int) -> Generator[Page]:
        """Scope a test attempt to a fresh page, released on every exit path."""
        page = self.begin_test_session(worker_id)
        try:
            yield page
        finally:
            self.end_test_session(worker_id)

    def shutdown_worker(self, worker_id: int) -> None:
        """Close the worker's browser, then its engine."""
        self.end_test_session(worker_id)
        session = self._sessions.pop(worker_id, None)
        if session is None:
            return

        log.debug("Shutting down browser stack for worker %d", worker_id)
        if session.browser is not None:
            try:
                session.browser.close()
            except PlaywrightError as e:
                log.warning("Failed to close browser for worker %d: %s", worker_id, e)
        if session.engine is not None:
            try:
                session.engine.stop()
            except PlaywrightError as e:
                log.warning("Failed to stop engine for worker %d: %s", worker_id, e)

    def current_page(self, worker_id: int) -> Page | None:
        """Page of the worker's active session, if any."""
        session = self._sessions.get(worker_id)
        return session.page if session is not None else None

    def current_context(self, worker_id: int) -> BrowserContext | None:
        """Context of the worker's active session, if any."""
        session = self._sessions.get(worker_id)
        return session.context if session is not None else None

    def live_pages(self) -> Mapping[int, Page]:
        """Pages of all active sessions, keyed by worker id."""
        return {
            worker_id: session.page
            for worker_id, session in list(self._sessions.items())
            if session.page is not None
        }

    def workers(self) -> Sequence[int]:
        """Ids of workers that currently own a browser stack."""
        return sorted(self._sessions)
