"""Bounded retry protocol for generator-backed edits.

Provides retry_with_steering() -- a generic loop that validates each
attempt's result and steers the next attempt with the failure diagnosis.
The workflow editing agent drives its Drafting/Validating cycle through
it; anything that produces a checkable result can use it the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from workflow_editor.exceptions import RetryExhaustedError

T = TypeVar("T")


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    """Result of a retry-guarded operation.

    Attributes:
        value: The successful result value.
        attempts: Total attempts (1 = first try succeeded).
        history: Failure diagnoses in order (None if first try succeeded).
    """

    value: T
    attempts: int
    history: list[str] | None = None


def retry_with_steering(
    *,
    attempt: Callable[[int], T],
    validate: Callable[[T], tuple[bool, str | None]],
    steer: Callable[[int, str], None],
    max_retries: int = 3,
) -> RetryResult[T]:
    """Execute an operation with validation and steering.

    Flow:
        1. result = attempt(n)
        2. (ok, diagnosis) = validate(result)
        3. If ok: return RetryResult
        4. If n >= max_retries: raise RetryExhaustedError
        5. steer(n, diagnosis) -- feed the diagnosis into attempt n+1
        6. Goto 1

    Args:
        attempt: Callable taking the 1-based attempt number, returns a result.
        validate: Callable taking the result, returns (ok, diagnosis).
            diagnosis is None on success, a string on failure.
        steer: Callable taking the failed attempt number and its diagnosis.
            Never called after the final attempt.
        max_retries: Maximum total attempts (default 3).

    Returns:
        RetryResult with the successful value, attempt count, and history.

    Raises:
        RetryExhaustedError: If all attempts fail validation.
        ValueError: If max_retries < 1.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")

    history: list[str] = []
    last_diagnosis: str | None = None
    result: T | None = None

    for attempt_num in range(1, max_retries + 1):
        result = attempt(attempt_num)
        ok, diagnosis = validate(result)

        if ok:
            return RetryResult(
                value=result,
                attempts=attempt_num,
                history=history if history else None,
            )

        # Failed -- record and steer
        last_diagnosis = diagnosis or "validation failed"
        history.append(last_diagnosis)

        if attempt_num < max_retries:
            steer(attempt_num, last_diagnosis)

    raise RetryExhaustedError(
        attempts=max_retries,
        last_diagnosis=last_diagnosis or "validation failed",
        last_result=result,
    )
