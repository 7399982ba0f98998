"""Agent configuration types.

Provides EditState, EmptyBatchPolicy and AgentConfig for configuring
the workflow editing agent.

An edit moves through:
    DRAFTING -> VALIDATING -> SUCCEEDED
                           -> RETRYING -> DRAFTING
                           -> EXHAUSTED
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class EditState(str, enum.Enum):
    """States of one process_edit_request() run."""

    DRAFTING = "drafting"
    VALIDATING = "validating"
    SUCCEEDED = "succeeded"
    RETRYING = "retrying"
    EXHAUSTED = "exhausted"


class EmptyBatchPolicy(str, enum.Enum):
    """What an empty ``toolCalls`` array means.

    - ``NOOP``: success with the template unchanged.
    - ``RETRY``: a malformed response, retried like any other failure.
    """

    NOOP = "noop"
    RETRY = "retry"


@dataclass
class AgentConfig:
    """Configuration for WorkflowEditingAgent.

    Attributes:
        max_attempts: Total generator attempts per request (default 3).
        empty_batch: Handling of an empty tool-call batch.
        screen_requests: Reject unsafe or out-of-range requests before
            any generator call.
        min_request_chars: Shortest accepted request (after trimming).
        max_request_chars: Longest accepted request.
        max_prompt_chars: Length the sanitised request is truncated to.
        system_prompt: Override for the generated system prompt.
    """

    max_attempts: int = 3
    empty_batch: EmptyBatchPolicy = EmptyBatchPolicy.NOOP
    screen_requests: bool = True
    min_request_chars: int = 5
    max_request_chars: int = 1000
    max_prompt_chars: int = 500
    system_prompt: str | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if isinstance(self.empty_batch, str) and not isinstance(self.empty_batch, EmptyBatchPolicy):
            self.empty_batch = EmptyBatchPolicy(self.empty_batch)
