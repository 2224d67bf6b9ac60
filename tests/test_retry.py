"""Tests for the prover retry policy."""

import pytest

from liquidswap.charms.retry import AttemptOutcome, RetryDecision, RetryPolicy, classify

FAILURES = [
    AttemptOutcome.NETWORK_ERROR,
    AttemptOutcome.REMOTE_REJECTED,
    AttemptOutcome.MALFORMED_RESPONSE,
    AttemptOutcome.EMPTY_RESULT,
]


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self):
        """Test 3 attempts starting at a 2s backoff."""
        policy = RetryPolicy()

        assert policy.max_attempts == 3
        assert policy.initial_backoff == 2.0
        assert policy.multiplier == 2.0

    def test_default_schedule(self):
        """Test the default schedule waits 2s then 4s."""
        assert RetryPolicy().backoff_schedule() == [2.0, 4.0]

    def test_schedule_grows_exponentially(self):
        """Test each delay doubles."""
        policy = RetryPolicy(max_attempts=5, initial_backoff=1.0)

        assert policy.backoff_schedule() == [1.0, 2.0, 4.0, 8.0]

    def test_single_attempt_never_sleeps(self):
        """Test one attempt means no backoff."""
        assert RetryPolicy(max_attempts=1).backoff_schedule() == []

    def test_new_state(self):
        """Test a fresh state starts at attempt 1 with the initial backoff."""
        state = RetryPolicy(initial_backoff=3.0).new_state()

        assert state.attempt == 1
        assert state.backoff == 3.0

    def test_advance(self):
        """Test advancing bumps the attempt and doubles the backoff."""
        policy = RetryPolicy()
        state = policy.new_state()

        state.advance(policy.multiplier)

        assert state.attempt == 2
        assert state.backoff == 4.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"initial_backoff": -1.0}, {"multiplier": 0.5}],
    )
    def test_rejects_invalid_values(self, kwargs):
        """Test nonsensical policies are refused."""
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestClassify:
    """Tests for outcome classification."""

    def test_success_always_succeeds(self):
        """Test success ends the loop on any attempt."""
        policy = RetryPolicy()
        state = policy.new_state()

        for _ in range(policy.max_attempts):
            assert classify(AttemptOutcome.SUCCESS, state, policy) is RetryDecision.SUCCEED
            state.advance(policy.multiplier)

    @pytest.mark.parametrize("outcome", FAILURES)
    def test_failures_retry_until_ceiling(self, outcome):
        """Test every failure kind is retried, then fails on the last attempt."""
        policy = RetryPolicy()
        state = policy.new_state()
        decisions = []

        for _ in range(policy.max_attempts):
            decisions.append(classify(outcome, state, policy))
            state.advance(policy.multiplier)

        assert decisions == [RetryDecision.RETRY, RetryDecision.RETRY, RetryDecision.FAIL]
