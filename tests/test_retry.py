"""Tests for the bounded retry protocol (retry_with_steering).

Exercises the generic loop, validation and steering
independent of the editing agent.
"""

from __future__ import annotations

import pytest

from workflow_editor.exceptions import RetryExhaustedError
from workflow_editor.retry import RetryResult, retry_with_steering


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class CallTracker:
    """Tracks calls to attempt/validate/steer."""

    def __init__(
        self,
        *,
        results: list | None = None,
        validations: list[tuple[bool, str | None]] | None = None,
    ):
        self.results = results or ["result"]
        self.validations = validations or [(True, None)]
        self.attempt_numbers: list[int] = []
        self._validate_count = 0
        self.steer_calls: list[tuple[int, str]] = []

    def attempt(self, number: int):
        self.attempt_numbers.append(number)
        idx = min(len(self.attempt_numbers) - 1, len(self.results) - 1)
        return self.results[idx]

    def validate(self, result):
        idx = min(self._validate_count, len(self.validations) - 1)
        self._validate_count += 1
        return self.validations[idx]

    def steer(self, number: int, diagnosis: str):
        self.steer_calls.append((number, diagnosis))

    def run(self, **kwargs):
        return retry_with_steering(
            attempt=self.attempt,
            validate=self.validate,
            steer=self.steer,
            **kwargs,
        )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestRetryWithSteering:
    """Core retry protocol tests."""

    def test_first_attempt_succeeds(self):
        tracker = CallTracker(results=["good"], validations=[(True, None)])

        result = tracker.run()

        assert isinstance(result, RetryResult)
        assert result.value == "good"
        assert result.attempts == 1
        assert result.history is None
        assert tracker.steer_calls == []

    def test_retry_succeeds_on_second(self):
        tracker = CallTracker(
            results=["bad", "good"],
            validations=[(False, "too short"), (True, None)],
        )

        result = tracker.run()

        assert result.value == "good"
        assert result.attempts == 2
        assert result.history == ["too short"]
        assert tracker.steer_calls == [(1, "too short")]
        assert tracker.attempt_numbers == [1, 2]

    def test_retry_succeeds_on_third(self):
        tracker = CallTracker(
            results=["bad1", "bad2", "good"],
            validations=[(False, "err1"), (False, "err2"), (True, None)],
        )

        result = tracker.run()

        assert result.value == "good"
        assert result.attempts == 3
        assert result.history == ["err1", "err2"]
        assert tracker.steer_calls == [(1, "err1"), (2, "err2")]

    def test_all_attempts_fail(self):
        tracker = CallTracker(
            results=["a", "b", "c"],
            validations=[(False, "e1"), (False, "e2"), (False, "e3")],
        )

        with pytest.raises(RetryExhaustedError) as exc_info:
            tracker.run(max_retries=3)

        err = exc_info.value
        assert err.attempts == 3
        assert err.last_diagnosis == "e3"
        assert err.last_result == "c"
        assert "All 3 retry attempts failed" in str(err)

    def test_steer_not_called_after_last_attempt(self):
        tracker = CallTracker(validations=[(False, "nope")])

        with pytest.raises(RetryExhaustedError):
            tracker.run(max_retries=2)

        assert [n for n, _ in tracker.steer_calls] == [1]
        assert tracker.attempt_numbers == [1, 2]

    def test_single_attempt_never_steers(self):
        tracker = CallTracker(validations=[(False, "nope")])

        with pytest.raises(RetryExhaustedError):
            tracker.run(max_retries=1)

        assert tracker.steer_calls == []

    def test_missing_diagnosis_gets_default(self):
        tracker = CallTracker(validations=[(False, None)])

        with pytest.raises(RetryExhaustedError) as exc_info:
            tracker.run(max_retries=1)

        assert exc_info.value.last_diagnosis == "validation failed"

    @pytest.mark.parametrize("max_retries", [0, -1])
    def test_invalid_max_retries(self, max_retries):
        tracker = CallTracker()
        with pytest.raises(ValueError, match="max_retries must be at least 1"):
            tracker.run(max_retries=max_retries)
        assert tracker.attempt_numbers == []
