"""Models for test execution results."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

Outcome = Literal["pass", "fail", "skip"]


@dataclass(frozen=True, kw_only=True)
class AttemptRecord:
    """Outcome of one execution of a test unit on a fresh browser session."""

    attempt_number: int
    outcome: Outcome
    duration: float = 0.0
    message: str | None = None
    failure_artifact: bytes | None = None


@dataclass(frozen=True, kw_only=True)
class UnitResult:
    """Final result of a test unit after the retry loop settled.

    Retried-but-passing units report as a plain pass; the attempt history is
    kept for logs only.
    """

    name: str
    status: Outcome
    duration: float
    attempts: Sequence[AttemptRecord] = ()
    message: str | None = None
    worker_id: int | None = None

    @property
    def retries_used(self) -> int:
        """Retries consumed before the final attempt."""
        return max(len(self.attempts) - 1, 0)


@dataclass(frozen=True, kw_only=True)
class Attachment:
    """Diagnostic artifact handed to a report sink."""

    name: str
    mime_type: str
    data: bytes = b""
