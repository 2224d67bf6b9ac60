"""Retry policy for prover calls.

Every failed attempt (transport error, non-success status, malformed or
empty body) is treated as transient. The client asks ``classify`` what to
do after each attempt and sleeps ``state.backoff`` before the next one.
"""

from dataclasses import dataclass
from enum import Enum


class AttemptOutcome(str, Enum):
    """Result of a single request/response round trip."""

    SUCCESS = "success"
    NETWORK_ERROR = "network_error"
    REMOTE_REJECTED = "remote_rejected"
    MALFORMED_RESPONSE = "malformed_response"
    EMPTY_RESULT = "empty_result"


class RetryDecision(str, Enum):
    """What the client does after an attempt."""

    SUCCEED = "succeed"
    RETRY = "retry"
    FAIL = "fail"


@dataclass
class RetryState:
    """Per-call attempt counter and current backoff (seconds)."""

    attempt: int
    backoff: float

    def advance(self, multiplier: float) -> None:
        """Move to the next attempt and grow the backoff."""
        self.attempt += 1
        self.backoff *= multiplier


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    With the defaults a call makes at most 3 attempts, waiting 2s and then
    4s between them.
    """

    max_attempts: int = 3
    initial_backoff: float = 2.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_backoff < 0:
            raise ValueError(f"initial_backoff must be >= 0, got {self.initial_backoff}")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")

    def new_state(self) -> RetryState:
        return RetryState(attempt=1, backoff=self.initial_backoff)

    def backoff_schedule(self) -> list[float]:
        """Delays slept between attempts when every attempt fails."""
        delays = []
        delay = self.initial_backoff
        for _ in range(self.max_attempts - 1):
            delays.append(delay)
            delay *= self.multiplier
        return delays


def classify(outcome: AttemptOutcome, state: RetryState, policy: RetryPolicy) -> RetryDecision:
    """Map an attempt outcome to the next step of the retry loop."""
    if outcome is AttemptOutcome.SUCCESS:
        return RetryDecision.SUCCEED
    if state.attempt < policy.max_attempts:
        return RetryDecision.RETRY
    return RetryDecision.FAIL
