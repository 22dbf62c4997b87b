"""Retry decisions for failed test units."""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Literal

from ui_harness.models.config import RetryPolicy
from ui_harness.models.result import AttemptRecord, Outcome

log = logging.getLogger(__name__)

type UnitState = Literal["pending", "running", "passed", "skipped", "failed_final"]

TERMINAL_STATES: Sequence[UnitState] = ("passed", "skipped", "failed_final")


@dataclass(kw_only=True)
class RetryTracker:
    """Retry state machine of a single test unit.

    Every unit gets its own tracker, so attempt counters never carry over
    from one unit to the next.
    """

    name: str
    policy: RetryPolicy
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    state: UnitState = "pending"
    attempts_used: int = 0

    @property
    def attempt_number(self) -> int:
        """1-based number of the current (or next) attempt."""
        return self.attempts_used + 1

    @property
    def finished(self) -> bool:
        """Whether the unit reached a terminal state."""
        return self.state in TERMINAL_STATES

    def start_attempt(self) -> int:
        """Move to running and return the attempt number."""
        if self.finished:
            raise RuntimeError(f"Unit '{self.name}' already finished as {self.state}")
        self.state = "running"
        return self.attempt_number

    def will_retry(self, outcome: Outcome) -> bool:
        """Whether the given outcome would lead to another attempt."""
        return (
            outcome == "fail"
            and self.policy.enabled
            and self.attempts_used < self.policy.max_attempts
        )

    def finish_attempt(self, outcome: Outcome) -> bool:
        """Record an attempt outcome.

        Returns:
            True if the unit must run again, False once it is terminal

        """
        if outcome == "pass":
            self.state = "passed"
            return False
        if outcome == "skip":
            self.state = "skipped"
            return False
        if not self.will_retry(outcome):
            self.state = "failed_final"
            return False

        self.attempts_used += 1
        log.info("Retrying test '%s' for the %d time", self.name, self.attempts_used)
        if self.policy.delay_ms > 0:
            self.sleep(self.policy.delay_ms / 1000)
        self.state = "pending"
        return True


@dataclass(frozen=True, kw_only=True)
class RetryController:
    """Drives test units through their retry loop under one policy."""

    policy: RetryPolicy
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def tracker(self, name: str) -> RetryTracker:
        """Create a fresh tracker for a test unit."""
        return RetryTracker(name=name, policy=self.policy, sleep=self.sleep)

    def run(
        self,
        name: str,
        attempt: Callable[[RetryTracker], AttemptRecord],
    ) -> Sequence[AttemptRecord]:
        """Run attempts until the unit reaches a terminal state.

        Args:
            name: Test unit name, used for logging
            attempt: Executes one attempt; receives the tracker so it can ask
                whether its outcome will be retried while its page is live

        Returns:
            Attempt records in execution order; the last one is final

        """
        tracker = self.tracker(name)
        records: list[AttemptRecord] = []
        while True:
            tracker.start_attempt()
            record = attempt(tracker)
            records.append(record)
            if not tracker.finish_attempt(record.outcome):
                return records
