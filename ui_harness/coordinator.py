"""Suite coordinator running test units on parallel browser workers."""

import logging
import queue
import threading
import time
from collections.abc import Callable, Sequence
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Literal

from ui_harness.models.config import BrowserKind, RunConfiguration
from ui_harness.models.result import AttemptRecord, Outcome, UnitResult
from ui_harness.observer import FailureObserver
from ui_harness.reporting.base import ReportSink
from ui_harness.retry import RetryController, RetryTracker
from ui_harness.session_pool import (
    EngineFactory,
    EngineStartError,
    SessionPool,
    start_playwright,
)
from ui_harness.unit import SkipUnit, TestUnit, UnitContext

log = logging.getLogger(__name__)

PROBE_WORKER_ID = 0


@dataclass(frozen=True, kw_only=True)
class SuiteParameters:
    """How the run is scheduled, derived from the configuration."""

    parallel_mode: Literal["methods", "none"]
    worker_count: int
    browser: BrowserKind
    headless: bool
    environment: str


@dataclass(kw_only=True)
class _RunState:
    """Shared bookkeeping of one `run` call.

    Each result slot is written by exactly one worker, the one that took the
    unit from the queue.
    """

    pending: "queue.SimpleQueue[tuple[int, TestUnit]]"
    results: list[UnitResult | None]
    idle: threading.Barrier
    started: threading.Event = field(default_factory=threading.Event)
    aborted: EngineStartError | None = None

    def next_unit(self) -> tuple[int, TestUnit] | None:
        try:
            return self.pending.get_nowait()
        except queue.Empty:
            return None


class SuiteCoordinator:
    """Runs test units across worker threads with retry and failure capture.

    Every worker owns its browser stack in the session pool. Each unit runs
    inside the retry loop, every attempt on a fresh context and page, and the
    failure observer fires while the failing page is still open.
    """

    def __init__(
        self,
        config: RunConfiguration,
        sink: ReportSink,
        engine_factory: EngineFactory = start_playwright,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.pool = SessionPool(config, engine_factory)
        self.retry = RetryController(policy=config.retry, sleep=sleep)
        self.observer = FailureObserver(sink=sink, settings=config.screenshot)
        self._clock = clock

    def configure(self) -> SuiteParameters:
        """Derive the suite parameters and log them."""
        parameters = SuiteParameters(
            parallel_mode="methods" if self.config.parallel else "none",
            worker_count=self.config.effective_worker_count,
            browser=self.config.browser_kind,
            headless=self.config.headless,
            environment=self.config.environment_name,
        )
        if self.config.parallel:
            log.info(
                "Enabling parallel execution with %d threads", parameters.worker_count
            )
        else:
            log.info("Parallel execution is disabled")
        log.info(
            "Configured suite parameters - browser: %s, headless: %s, environment: %s",
            parameters.browser,
            parameters.headless,
            parameters.environment,
        )
        return parameters

    def run(self, units: Sequence[TestUnit]) -> Sequence[UnitResult]:
        """Run all units and return their results in submission order.

        Raises:
            EngineStartError: If the first worker cannot start a browser; no
                unit runs in that case

        """
        parameters = self.configure()
        if not units:
            log.info("No test units provided")
            return []

        pending: queue.SimpleQueue[tuple[int, TestUnit]] = queue.SimpleQueue()
        for item in enumerate(units):
            pending.put(item)

        state = _RunState(
            pending=pending,
            results=[None] * len(units),
            idle=threading.Barrier(parameters.worker_count),
        )

        log.info(
            "Dispatching %d unit(s) to %d worker(s)...",
            len(units),
            parameters.worker_count,
        )
        workers = [
            threading.Thread(
                target=self._work,
                args=(worker_id, state),
                name=f"ui-harness-worker-{worker_id}",
            )
            for worker_id in range(parameters.worker_count)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        log.info("Test execution completed")

        if state.aborted is not None:
            raise state.aborted

        return [
            result
            if result is not None
            else UnitResult(
                name=unit.name,
                status="fail",
                duration=0.0,
                message="No worker with a running browser was left to run this unit",
            )
            for unit, result in zip(units, state.results, strict=True)
        ]

    def _work(self, worker_id: int, state: _RunState) -> None:
        """Body of one worker thread."""
        try:
            if self._ready(worker_id, state):
                self._drain(worker_id, state)
        finally:
            state.idle.wait()
            self.pool.shutdown_worker(worker_id)

    def _ready(self, worker_id: int, state: _RunState) -> bool:
        """Gate workers until the first browser is known to start."""
        if worker_id != PROBE_WORKER_ID:
            state.started.wait()
            return state.aborted is None

        try:
            self.pool.acquire_worker_browser(worker_id)
        except EngineStartError as e:
            log.error("Aborting run, browser engine failed to start: %s", e)
            state.aborted = e
            return False
        finally:
            state.started.set()
        return True

    def _drain(self, worker_id: int, state: _RunState) -> None:
        while (item := state.next_unit()) is not None:
            index, unit = item
            started = self._clock()
            try:
                result = self.execute_unit(worker_id, unit)
            except EngineStartError as e:
                log.error("Worker %d cannot run tests: %s", worker_id, e)
                if self.observer.should_capture("fail", terminal=True):
                    self.observer.on_terminal_failure(unit.name, None)
                state.results[index] = UnitResult(
                    name=unit.name,
                    status="fail",
                    duration=self._clock() - started,
                    message=str(e),
                    worker_id=worker_id,
                )
                return
            except Exception as e:
                log.error("Test unit %s crashed: %s", unit.name, e, exc_info=e)
                result = UnitResult(
                    name=unit.name,
                    status="fail",
                    duration=self._clock() - started,
                    message=str(e),
                    worker_id=worker_id,
                )

            log.info(
                "Test completed: unit=%s status=%s duration=%.1fs worker=%d",
                result.name,
                result.status,
                result.duration,
                worker_id,
            )
            state.results[index] = result

    def execute_unit(self, worker_id: int, unit: TestUnit) -> UnitResult:
        """Run one unit on a worker through its retry loop."""
        started = self._clock()
        records = self.retry.run(
            unit.name, lambda tracker: self._attempt(worker_id, unit, tracker)
        )
        final = records[-1]
        return UnitResult(
            name=unit.name,
            status=final.outcome,
            duration=self._clock() - started,
            attempts=records,
            message=final.message,
            worker_id=worker_id,
        )

    def _attempt(
        self, worker_id: int, unit: TestUnit, tracker: RetryTracker
    ) -> AttemptRecord:
        started = self._clock()
        artifact: bytes | None = None
        outcome: Outcome
        message: str | None

        with ExitStack() as session:
            try:
                session.enter_context(self.pool.test_session(worker_id))
            except EngineStartError:
                raise
            except Exception as e:
                log.warning(
                    "Test '%s' could not open a browser session on attempt %d: %s",
                    unit.name,
                    tracker.attempt_number,
                    e,
                )
                outcome, message = "fail", f"{type(e).__name__}: {e}"
            else:
                context = UnitContext(
                    worker_id=worker_id,
                    attempt_number=tracker.attempt_number,
                    config=self.config,
                    pool=self.pool,
                )
                outcome, message = self._invoke(unit, context)

            terminal = not tracker.will_retry(outcome)
            if self.observer.should_capture(outcome, terminal=terminal):
                attachment = self.observer.on_terminal_failure(
                    unit.name, self.pool.current_page(worker_id)
                )
                artifact = attachment.data if attachment is not None else None

        return AttemptRecord(
            attempt_number=tracker.attempt_number,
            outcome=outcome,
            duration=self._clock() - started,
            message=message,
            failure_artifact=artifact,
        )

    def _invoke(
        self, unit: TestUnit, context: UnitContext
    ) -> tuple[Outcome, str | None]:
        try:
            unit.body(context)
        except SkipUnit as e:
            log.info("Test '%s' skipped: %s", unit.name, e)
            return "skip", str(e) or None
        except Exception as e:
            log.warning(
                "Test '%s' failed on attempt %d: %s",
                unit.name,
                context.attempt_number,
                e,
            )
            return "fail", f"{type(e).__name__}: {e}"
        return "pass", None
